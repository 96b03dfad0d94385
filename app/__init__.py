import os
from datetime import timedelta
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate, upgrade
from dotenv import load_dotenv

# Load environment variables (override=True ensures .env values take precedence)
load_dotenv(override=True)

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()


def create_app(config_name=None):
    """Application factory pattern."""
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev-secret-key-change-me')
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///dev.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # Session configuration - admin unlock lasts for the browser session only
    app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(hours=12)
    app.config['SESSION_COOKIE_SECURE'] = os.environ.get('RAILWAY_ENVIRONMENT') is not None  # HTTPS only in production
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'

    # Shared passcode for the admin settings page
    app.config['ADMIN_PASSWORD'] = os.environ.get('ADMIN_PASSWORD', 'churchpassword123')

    # Ledger endpoints (may be overridden from the admin settings page)
    app.config['RECORD_SOURCE_URL'] = os.environ.get('RECORD_SOURCE_URL', '')
    app.config['APPEND_ENDPOINT_URL'] = os.environ.get('APPEND_ENDPOINT_URL', '')
    app.config['APPEND_TIMEOUT'] = float(os.environ.get('APPEND_TIMEOUT', 15))
    app.config['FETCH_TIMEOUT'] = float(os.environ.get('FETCH_TIMEOUT', 20))
    app.config['RESYNC_DELAY'] = float(os.environ.get('RESYNC_DELAY', 2.5))
    app.config['RECENT_CAPACITY'] = int(os.environ.get('RECENT_CAPACITY', 10))
    app.config['LEDGER_SYNC_ON_STARTUP'] = os.environ.get('LEDGER_SYNC_ON_STARTUP', 'true').lower() == 'true'

    app.logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO'))

    if config_name == 'testing':
        app.config['TESTING'] = True
        app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite:///:memory:'
        app.config['LEDGER_SYNC_ON_STARTUP'] = False

    # Fix for postgres:// vs postgresql:// (some providers use older postgres:// format)
    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('postgres://'):
        app.config['SQLALCHEMY_DATABASE_URI'] = app.config['SQLALCHEMY_DATABASE_URI'].replace(
            'postgres://', 'postgresql://', 1
        )

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)

    # Register blueprints
    from app.routes.main import main_bp
    from app.routes.admin import admin_bp
    from app.routes.api import api_bp
    app.register_blueprint(main_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(api_bp)

    # Import models so they're known to Flask-Migrate
    from app import models

    # Auto-run migrations in production (Railway)
    if os.environ.get('RAILWAY_ENVIRONMENT'):
        with app.app_context():
            upgrade()

    if config_name == 'testing':
        with app.app_context():
            db.create_all()

    # Ledger service (resync scheduler, write-back, recent activity)
    from app.services.ledger_service import LedgerService
    LedgerService(app)

    return app
