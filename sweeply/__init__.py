import logging
import os
from datetime import datetime

import click
from flask import Flask, request

from sweeply.extensions import db, cors, limiter
from sweeply.errors import register_error_handlers
from sweeply.sanitize import sanitize_dict

logger = logging.getLogger(__name__)

# Paths whose JSON bodies are passed through untouched.
_SANITIZE_SKIP_PREFIXES = ('/api/auth/',)


def create_app(config_name=None):
    """Flask application factory"""
    app = Flask(__name__)

    # Load configuration
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    from sweeply.config import config
    app.config.from_object(config.get(config_name, config['default']))

    _configure_logging(app)
    _init_sentry(app)

    # Initialize extensions
    db.init_app(app)
    cors.init_app(app, origins=app.config['CORS_ORIGINS'], supports_credentials=True)
    limiter.init_app(app)

    register_error_handlers(app)

    # Register blueprints
    from sweeply.routes import auth_bp, clients_bp, jobs_bp, recurring_bp

    api_prefix = app.config['API_PREFIX']
    app.register_blueprint(auth_bp, url_prefix=f'{api_prefix}/auth')
    app.register_blueprint(clients_bp, url_prefix=f'{api_prefix}/clients')
    app.register_blueprint(jobs_bp, url_prefix=f'{api_prefix}/jobs')
    app.register_blueprint(recurring_bp, url_prefix=f'{api_prefix}/recurring')

    @app.before_request
    def sanitize_json_input():
        """Escape HTML in all string values of incoming JSON bodies"""
        if request.path.startswith(_SANITIZE_SKIP_PREFIXES) or not request.is_json:
            return
        raw = request.get_json(silent=True)
        if raw is not None:
            sanitized = sanitize_dict(raw)
            # Replace Flask's parsed-JSON cache so handlers see clean values.
            request._cached_json = (sanitized, sanitized)

    @app.after_request
    def set_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        return response

    # Health check endpoint
    @app.route('/health')
    def health():
        return {'status': 'healthy', 'service': 'sweeply-backend'}, 200

    _register_cli(app)

    if app.config['ENABLE_SCHEDULER']:
        from sweeply.scheduler import init_scheduler
        app.extensions['sweeply_scheduler'] = init_scheduler(app)

    return app


def _configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
        )
    logging.getLogger('sweeply').setLevel(level)


def _init_sentry(app):
    """Sentry error monitoring (optional -- only active when SENTRY_DSN is set)"""
    dsn = app.config.get('SENTRY_DSN')
    if not dsn:
        return
    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.1,
    )
    logger.info('Sentry error monitoring enabled')


def _register_cli(app):

    @app.cli.command('init-db')
    def cli_init_db():
        """Create all database tables."""
        db.create_all()
        click.echo('Database tables created.')

    @app.cli.command('process-recurring')
    @click.option('--date', 'on_date', default=None, help='Treat this YYYY-MM-DD as today.')
    def cli_process_recurring(on_date):
        """Extend recurring series instances and retire finished series."""
        from sweeply.services.maintenance import process_recurring_jobs

        today = datetime.strptime(on_date, '%Y-%m-%d').date() if on_date else None
        summary = process_recurring_jobs(today=today)
        for result in summary['results']:
            click.echo('  -> {job_id}: {status}'.format(**result))
        click.echo('Retired {} series.'.format(len(summary['retired'])))


__all__ = ['create_app', 'db']
