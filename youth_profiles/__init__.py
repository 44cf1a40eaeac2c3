"""
Youth Profile Administration

Registration and renewal of youth membership profiles: personal details,
addresses, guardian approval and photo usage consent.

Enhanced with:
- CSRF protection
- Rate limiting
- Security headers
- Audit logging
"""

import os
from datetime import datetime
from flask import Flask, request, g
from flask_sqlalchemy import SQLAlchemy

# Initialize extensions
db = SQLAlchemy()


def create_app(test_config=None):
    """Application factory pattern."""
    app = Flask(__name__, instance_relative_config=True)

    # Default configuration
    app.config.from_mapping(
        SECRET_KEY=os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production'),
        SQLALCHEMY_DATABASE_URI=os.environ.get('DATABASE_URL', 'sqlite:///youth_profiles.db'),
        SQLALCHEMY_TRACK_MODIFICATIONS=False,

        # Catalogs and validation
        CATALOG_LOCALE=os.environ.get('CATALOG_LOCALE', 'fi'),
        ADMINISTERING_COUNTRY=os.environ.get('ADMINISTERING_COUNTRY', 'FI'),
        BIRTH_DATE_MAX_AGE_YEARS=int(os.environ.get('BIRTH_DATE_MAX_AGE_YEARS', 120)),

        # Membership period ends on this day every year
        MEMBERSHIP_EXPIRATION_MONTH=int(os.environ.get('MEMBERSHIP_EXPIRATION_MONTH', 8)),
        MEMBERSHIP_EXPIRATION_DAY=int(os.environ.get('MEMBERSHIP_EXPIRATION_DAY', 31)),

        # CSRF settings
        WTF_CSRF_ENABLED=True,
        WTF_CSRF_TIME_LIMIT=3600,  # 1 hour
        WTF_CSRF_SSL_STRICT=False,  # Disabled for development

        # Rate limiting settings
        RATELIMIT_STORAGE_URI=os.environ.get('REDIS_URL', 'memory://'),
        RATELIMIT_STRATEGY='fixed-window',
        RATELIMIT_DEFAULT='100 per minute',
        RATELIMIT_HEADERS_ENABLED=True,
    )

    if test_config is None:
        # Load instance config if it exists
        app.config.from_pyfile('config.py', silent=True)
    else:
        # Load test config
        app.config.from_mapping(test_config)

    # Ensure instance folder exists
    try:
        os.makedirs(app.instance_path)
    except OSError:
        pass

    # Catalogs are loaded once, before any request can validate a profile.
    # A malformed catalog aborts start-up.
    from youth_profiles.catalogs import Catalogs, init_catalogs
    from youth_profiles.validation import ValidationRules
    catalogs = app.config.get('CATALOGS') or Catalogs.from_locale(app.config['CATALOG_LOCALE'])
    init_catalogs(catalogs)
    app.extensions['youth_profiles.catalogs'] = catalogs
    app.extensions['youth_profiles.rules'] = ValidationRules(
        max_age_years=app.config['BIRTH_DATE_MAX_AGE_YEARS']
    )
    app.logger.info(
        f'Loaded {len(catalogs.countries)} countries for locale {catalogs.countries.locale}'
    )

    # Initialize extensions with app
    db.init_app(app)

    from youth_profiles.security import add_security_headers, init_security
    init_security(app)

    # Register blueprints
    from youth_profiles.routes import api_bp
    app.register_blueprint(api_bp)

    # Add security headers to all responses
    @app.after_request
    def after_request(response):
        """Add security headers to all responses."""
        return add_security_headers(response)

    # Request logging
    @app.before_request
    def before_request():
        """Log request start."""
        g.request_start_time = datetime.utcnow()

    @app.after_request
    def log_request(response):
        """Log request completion."""
        if hasattr(g, 'request_start_time'):
            duration = (datetime.utcnow() - g.request_start_time).total_seconds()
            app.logger.info(
                f'{request.method} {request.path} - {response.status_code} - {duration:.3f}s'
            )
        return response

    # Create database tables
    with app.app_context():
        from youth_profiles import models  # noqa: F401
        db.create_all()

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        return {'ok': False, 'error': 'Not found'}, 404

    @app.errorhandler(500)
    def internal_error(error):
        """Handle internal errors."""
        db.session.rollback()
        app.logger.error(f'Internal error: {str(error)}')
        return {'ok': False, 'error': 'Internal server error'}, 500

    return app
