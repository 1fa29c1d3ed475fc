import os

from fitstock import create_app, db

config_name = os.environ.get('FLASK_ENV', 'production')
app = create_app(config_name)

# ── Ensure tables exist on startup (no shell access on the host) ──
with app.app_context():
    db.create_all()

if __name__ == "__main__":
    app.run()
