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

    # Session configuration - 30 day persistent sessions
    app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(days=30)
    app.config['SESSION_COOKIE_SECURE'] = os.environ.get('RAILWAY_ENVIRONMENT') is not None  # HTTPS only in production
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'

    # App URL for deep links in emails (defaults to localhost for dev, must be set in production)
    app.config['APP_URL'] = os.environ.get('APP_URL', 'http://localhost:5000')

    # Job trigger credentials - either one authorizes the reminder endpoint
    app.config['SERVICE_ROLE_KEY'] = os.environ.get('SERVICE_ROLE_KEY')
    app.config['CRON_SECRET'] = os.environ.get('CRON_SECRET')

    # Web push (VAPID) and optional Brevo email
    app.config['VAPID_PUBLIC_KEY'] = os.environ.get('VAPID_PUBLIC_KEY')
    app.config['VAPID_PRIVATE_KEY'] = os.environ.get('VAPID_PRIVATE_KEY')
    app.config['VAPID_SUBJECT'] = os.environ.get('VAPID_SUBJECT', 'mailto:admin@pickup.app')
    app.config['BREVO_API_KEY'] = os.environ.get('BREVO_API_KEY')

    # Reminder window and per-delivery timeout
    app.config['REMINDER_MIN_LEAD_HOURS'] = int(os.environ.get('REMINDER_MIN_LEAD_HOURS', 24))
    app.config['REMINDER_MAX_LEAD_HOURS'] = int(os.environ.get('REMINDER_MAX_LEAD_HOURS', 48))
    app.config['DELIVERY_TIMEOUT_SECONDS'] = float(os.environ.get('DELIVERY_TIMEOUT_SECONDS', 10))

    if config_name == 'testing':
        app.config['TESTING'] = True
        app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite://'
        app.config['SERVICE_ROLE_KEY'] = 'test-service-key'
        app.config['CRON_SECRET'] = 'test-cron-secret'
        app.config['BREVO_API_KEY'] = None
        app.config['APP_URL'] = 'https://pickup.test'

    # Fix for postgres:// vs postgresql:// (some providers use older postgres:// format)
    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('postgres://'):
        app.config['SQLALCHEMY_DATABASE_URI'] = app.config['SQLALCHEMY_DATABASE_URI'].replace(
            'postgres://', 'postgresql://', 1
        )

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)

    # Register blueprints
    from pickup.routes.main import main_bp
    from pickup.routes.jobs import jobs_bp
    from pickup.routes.pickup import pickup_bp
    from pickup.routes.push import push_bp
    app.register_blueprint(main_bp)
    app.register_blueprint(jobs_bp)
    app.register_blueprint(pickup_bp)
    app.register_blueprint(push_bp)

    # Import models so they're known to Flask-Migrate
    from pickup import models

    # Auto-run migrations in production (Railway)
    if os.environ.get('RAILWAY_ENVIRONMENT') and config_name != 'testing':
        with app.app_context():
            upgrade()

    return app
