import click
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from config import config

db = SQLAlchemy()


def create_app(config_name='default'):
    """Application factory: creates and configures the Flask app."""
    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # ── Logging ───────────────────────────────────────────────────
    from fitstock.utils.logging import setup_logging
    setup_logging(app)

    # ── Extensions ────────────────────────────────────────────────
    db.init_app(app)

    # ── Blueprints ────────────────────────────────────────────────
    from fitstock.main import main as main_blueprint
    app.register_blueprint(main_blueprint)

    from fitstock.auth import auth as auth_blueprint
    app.register_blueprint(auth_blueprint, url_prefix='/auth')

    from fitstock.inventory import inventory as inventory_blueprint
    app.register_blueprint(inventory_blueprint, url_prefix='/inventory')

    from fitstock.sales import sales as sales_blueprint
    app.register_blueprint(sales_blueprint, url_prefix='/sales')

    # ── Error Handlers ────────────────────────────────────────────
    @app.errorhandler(403)
    def forbidden(e):
        return jsonify({'status': 'error', 'message': 'Access denied'}), 403

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'status': 'error', 'message': 'Not found'}), 404

    @app.errorhandler(500)
    def internal_error(e):
        return jsonify({'status': 'error', 'message': 'Server error'}), 500

    # ── CLI Commands ──────────────────────────────────────────────
    register_commands(app)

    # ── ProxyFix (HTTPS termination at the platform edge) ─────────
    if config_name == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app


def register_commands(app):
    """Register custom Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db():
        """Create all database tables."""
        db.create_all()
        click.echo('✅  Database tables created.')

    @app.cli.command('seed-admin')
    @click.option('--name',     prompt='Full name',  help='User full name')
    @click.option('--username', prompt='Username',   help='Login username')
    @click.option('--password', prompt=True, hide_input=True,
                  confirmation_prompt=True, help='Login password')
    def seed_admin(name, username, password):
        """Create a login user."""
        from fitstock.auth.models import User

        if User.query.filter_by(username=username).first():
            click.echo(f'⚠️  User "{username}" already exists.')
            return

        user = User(name=name, username=username)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        click.echo(f'✅  User "{username}" created successfully.')

    @app.cli.command('seed-demo')
    def seed_demo():
        """Populate database with demo categories, products and a login."""
        from fitstock.auth.models import User
        from fitstock.inventory.models import Category, Product
        from decimal import Decimal

        click.echo("🌱 Seeding demo data...")
        db.create_all()

        if not User.query.filter_by(username='admin').first():
            u = User(name='Admin', username='admin')
            u.set_password('admin123')
            db.session.add(u)
            click.echo("✅ Login created (admin/admin123).")

        for name in ('cardio', 'weights', 'accessories'):
            if not Category.query.filter_by(name=name).first():
                db.session.add(Category(name=name))

        if Product.query.count() == 0:
            demo = [
                ('Treadmill T200',        'cardio',      4,  '54999.00'),
                ('Spin Bike S1',          'cardio',      7,  '18999.00'),
                ('Hex Dumbbell 10kg',     'weights',     40, '1450.00'),
                ('Olympic Barbell 20kg',  'weights',     6,  '8999.00'),
                ('Kettlebell 16kg',       'weights',     12, '2199.00'),
                ('Resistance Band Set',   'accessories', 35, '899.00'),
                ('Yoga Mat 6mm',          'accessories', 3,  '749.00'),
                ('Skipping Rope',         'accessories', 50, '299.00'),
            ]
            for name, category, qty, price in demo:
                db.session.add(Product(
                    name=name, category=category,
                    quantity=qty, price_per_unit=Decimal(price),
                ))
            click.echo("✅ Products seeded.")

        db.session.commit()
        click.echo("✅ Demo seed complete.")
