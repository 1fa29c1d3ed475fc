"""
fitstock/sales/render.py
------------------------
Turns an Invoice into a downloadable document.

Both renderers are pure functions of the invoice value: the PDF canvas
runs in reportlab's invariant mode (fixed creation date and document id),
so the same invoice always yields the same bytes.
"""
from io import BytesIO

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from fitstock.sales.invoice import Invoice


FONT_REGULAR = 'Helvetica'
FONT_BOLD    = 'Helvetica-Bold'

LEFT_MARGIN  = 20 * mm
TOP_MARGIN   = 20 * mm
BOTTOM_LIMIT = 270 * mm   # measured from the top, like the layout below


def invoice_filename(invoice: Invoice, ext: str = 'pdf') -> str:
    return f"invoice-{invoice.invoice_number}.{ext}"


def _money(amount) -> str:
    return f"Rs. {amount:.2f}"


# ── Plain text ────────────────────────────────────────────────────

def render_text(invoice: Invoice, store_name: str = 'FITSTOCK MANAGER') -> str:
    out = [
        store_name,
        'INVOICE',
        '',
        f'Invoice Number: {invoice.invoice_number}',
        f'Date: {invoice.date}',
    ]
    if invoice.customer_name:
        out.append(f'Customer: {invoice.customer_name}')
    if invoice.customer_phone:
        out.append(f'Phone: {invoice.customer_phone}')

    out += ['', 'ITEMS:']
    for index, line in enumerate(invoice.lines, start=1):
        out.append(f'{index}. {line.product_name}')
        if line.category:
            out.append(f'   Category: {line.category}')
        out.append(f'   Quantity: {line.quantity} x {_money(line.unit_price)}')
        out.append(f'   Subtotal: {_money(line.line_total)}')

    out += [
        '',
        f'TOTAL AMOUNT: {_money(invoice.grand_total)}',
        '',
        f'Thank you for choosing {store_name.title()}!',
    ]
    return '\n'.join(out) + '\n'


# ── PDF ───────────────────────────────────────────────────────────

class _Page:
    """Top-down text cursor over a reportlab canvas, breaking pages as needed."""

    def __init__(self, c: canvas.Canvas):
        self.c = c
        self.height = A4[1]
        self.y = TOP_MARGIN
        self.font = (FONT_REGULAR, 12)

    def set_font(self, name, size):
        self.font = (name, size)
        self.c.setFont(name, size)

    def text(self, top, value):
        self.c.drawString(LEFT_MARGIN, self.height - top, value)

    def ensure_room(self, needed):
        if self.y + needed > BOTTOM_LIMIT:
            self.c.showPage()
            # showPage() resets the graphics state
            self.c.setFont(*self.font)
            self.y = TOP_MARGIN


def render_pdf(invoice: Invoice, store_name: str = 'FITSTOCK MANAGER') -> bytes:
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4, invariant=1)
    c.setTitle(f'Invoice {invoice.invoice_number}')
    c.setAuthor(store_name)
    page = _Page(c)

    # Header
    page.set_font(FONT_BOLD, 20)
    page.text(30 * mm, store_name)
    page.set_font(FONT_BOLD, 16)
    page.text(45 * mm, 'INVOICE')

    # Invoice details
    page.set_font(FONT_REGULAR, 12)
    page.text(65 * mm, f'Invoice Number: {invoice.invoice_number}')
    page.text(75 * mm, f'Date: {invoice.date}')
    page.y = 75 * mm
    if invoice.customer_name:
        page.y += 10 * mm
        page.text(page.y, f'Customer: {invoice.customer_name}')
    if invoice.customer_phone:
        page.y += 10 * mm
        page.text(page.y, f'Phone: {invoice.customer_phone}')

    page.y += 20 * mm
    page.set_font(FONT_BOLD, 12)
    page.text(page.y, 'ITEMS:')
    page.y += 10 * mm

    page.set_font(FONT_REGULAR, 12)
    for index, line in enumerate(invoice.lines, start=1):
        page.ensure_room(32 * mm if line.category else 24 * mm)
        page.text(page.y, f'{index}. {line.product_name}')
        if line.category:
            page.y += 8 * mm
            page.text(page.y, f'   Category: {line.category}')
        page.text(page.y + 8 * mm, f'   Quantity: {line.quantity} x {_money(line.unit_price)}')
        page.text(page.y + 16 * mm, f'   Subtotal: {_money(line.line_total)}')
        page.y += 24 * mm

    # Total and footer
    page.ensure_room(50 * mm)
    page.set_font(FONT_BOLD, 14)
    page.text(page.y + 20 * mm, f'TOTAL AMOUNT: {_money(invoice.grand_total)}')
    page.set_font(FONT_REGULAR, 10)
    page.text(page.y + 50 * mm, f'Thank you for choosing {store_name.title()}!')

    c.showPage()
    c.save()
    return buffer.getvalue()
