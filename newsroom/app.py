"""
Newsroom application
====================

``Newsroom`` is the Flask extension that wires configuration, the database,
services and every blueprint onto an app. ``create_app`` is the factory used
by ``main.py``, the ``flask`` CLI and the tests.

Usage:
    from newsroom import create_app

    app = create_app({'SQLALCHEMY_DATABASE_URI': 'sqlite:///news.db'})
"""

import logging
import os
import time

import click
from flask import Flask, jsonify
from flask_cors import CORS
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .core import Config, Database, ImageStore, LoggingService, db
from .core.errors import ApiError
from .modules.auth import TokenService
from .modules.email import EmailService

logger = logging.getLogger(__name__)

DEFAULT_FEATURES = {
    'polls': True,
    'uploads': True,
    'contact': True,
}

SEED_CATEGORIES = [
    ('Politics', 'politics', 'Counties, Parliament and national politics'),
    ('Business', 'business', 'Markets, agriculture and enterprise'),
    ('Sports', 'sports', 'Athletics, football and local leagues'),
    ('Technology', 'technology', 'Innovation and digital life'),
    ('Entertainment', 'entertainment', 'Music, film and culture'),
]

SEED_AUTHORS = [
    ('Newsroom Desk', 'desk@mtkenyanews.com', 'Staff reports from the newsroom'),
]


class Newsroom:
    """
    Flask extension for the news site API.

    Holds the shared services for the app:
        database -- Database (pooled SQLAlchemy engine, raw SQL helpers)
        email    -- EmailService (SMTP)
        storage  -- ImageStore (S3 compatible image host)
        tokens   -- TokenService (admin JWTs)
        log      -- LoggingService (app_logs table)
    """

    def __init__(self, app=None, config=None):
        self._config = dict(config or {})
        self.features = dict(DEFAULT_FEATURES)
        self.features.update(self._config.get('features', {}))
        self._registered = []
        self._started = time.time()

        self.database = Database(db)
        self.log = LoggingService(self.database)
        self.tokens = TokenService()
        self.storage = ImageStore()
        self.email = EmailService()

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self._apply_config(app)
        self._setup_database_dir(app)

        db.init_app(app)
        CORS(app, resources={r"/api/*": {"origins": "*"}})

        self.tokens.init_app(app)
        self.storage.init_app(app)
        self.email.init_app(app)

        app.extensions['newsroom'] = self

        self._register_modules(app)
        self._register_error_handlers(app)
        self._register_health(app)
        self._register_cli(app)

        with app.app_context():
            self.database.init_db()

        logger.info(f"Newsroom initialised with modules: {', '.join(self._registered)}")

    def get_registered_modules(self):
        return list(self._registered)

    # ===== Setup =====

    @staticmethod
    def _apply_config(app):
        """Fill in Config defaults without overriding values already on app.config"""
        for key, value in Config.to_flask_config().items():
            if key == 'SQLALCHEMY_DATABASE_URI':
                continue
            app.config.setdefault(key, value)

        if not app.config.get('SQLALCHEMY_DATABASE_URI'):
            if app.config.get('DATABASE_URL'):
                app.config['SQLALCHEMY_DATABASE_URI'] = app.config['DATABASE_URL']
            else:
                app.config['SQLALCHEMY_DATABASE_URI'] = (
                    'sqlite:///' + os.path.join(app.config['DB_DIR'], 'news.db')
                )

    @staticmethod
    def _setup_database_dir(app):
        if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite:///'):
            os.makedirs(app.config['DB_DIR'], exist_ok=True)

    def _register(self, app, blueprint, name):
        app.register_blueprint(blueprint)
        self._registered.append(name)

    def _register_modules(self, app):
        from .modules.auth import auth_bp
        from .modules.dashboard import dashboard_bp
        from .modules.engagement import engagement_bp
        from .modules.news import news_bp
        from .modules.news_public import news_public_bp
        from .modules.subscribers import subscribers_bp

        self._register(app, news_public_bp, 'news_public')
        self._register(app, engagement_bp, 'engagement')
        self._register(app, subscribers_bp, 'subscribers')
        self._register(app, auth_bp, 'auth')
        self._register(app, news_bp, 'news')
        self._register(app, dashboard_bp, 'dashboard')

        if self.features.get('contact'):
            from .modules.contact import contact_bp
            self._register(app, contact_bp, 'contact')

        if self.features.get('polls'):
            from .modules.polls import polls_admin_bp, polls_bp
            self._register(app, polls_bp, 'polls')
            self._register(app, polls_admin_bp, 'polls_admin')

        if self.features.get('uploads'):
            from .modules.uploads import uploads_bp
            self._register(app, uploads_bp, 'uploads')

    def _register_error_handlers(self, app):
        def handle_api_error(e):
            if e.status_code >= 500:
                self.log.error('api', e.message)
            return jsonify(e.to_dict()), e.status_code

        def handle_not_found(e):
            return jsonify({'error': 'Not found'}), 404

        def handle_method_not_allowed(e):
            return jsonify({'error': 'Method not allowed'}), 405

        def handle_http_error(e):
            return jsonify({'error': e.description}), e.code

        def handle_unexpected(e):
            self.log.log_error_with_traceback('api', e)
            return jsonify({'error': str(e)}), 500

        app.register_error_handler(ApiError, handle_api_error)
        app.register_error_handler(404, handle_not_found)
        app.register_error_handler(405, handle_method_not_allowed)
        app.register_error_handler(HTTPException, handle_http_error)
        app.register_error_handler(Exception, handle_unexpected)

    def _register_health(self, app):
        @app.route('/health')
        def health():
            checks = {
                'database': 'ok',
                'email': 'configured' if self.email.is_configured else 'disabled',
                'storage': 'configured' if self.storage.is_configured else 'disabled',
                'uptime': int(time.time() - self._started),
            }
            status = 'ok'
            try:
                self.database.scalar('SELECT 1')
            except SQLAlchemyError as e:
                logger.error(f"Health check database failure: {e}")
                checks['database'] = 'error'
                status = 'critical'

            return jsonify({'status': status, 'checks': checks}), 200 if status == 'ok' else 503

    def _register_cli(self, app):
        @app.cli.command('init-db')
        def init_db_command():
            """Create any missing tables."""
            self.database.init_db()
            click.echo('Database initialised')

        @app.cli.command('seed')
        def seed_command():
            """Insert demo categories and authors."""
            added = seed_database(self.database)
            click.echo(f"Seeded {added} rows")

        @app.cli.command('cleanup-logs')
        @click.option('--days', default=30, show_default=True, help='Days of logs to keep')
        def cleanup_logs_command(days):
            """Delete app_logs entries older than --days."""
            deleted = self.log.cleanup_old_logs(days)
            click.echo(f"Deleted {deleted} log entries")


def seed_database(database):
    """Insert the demo categories and authors that are not there yet"""
    added = 0
    with database.transaction() as conn:
        for name, slug, description in SEED_CATEGORIES:
            added += database.run(
                conn,
                'INSERT INTO categories (name, slug, description) VALUES (:name, :slug, :description) '
                'ON CONFLICT (slug) DO NOTHING',
                {'name': name, 'slug': slug, 'description': description},
            )
        for name, email, bio in SEED_AUTHORS:
            added += database.run(
                conn,
                'INSERT INTO authors (name, email, bio) VALUES (:name, :email, :bio) '
                'ON CONFLICT (email) DO NOTHING',
                {'name': name, 'email': email, 'bio': bio},
            )
    return added


def create_app(config=None):
    """Build the Flask app; ``config`` entries override the environment"""
    config = dict(config or {})
    features = config.pop('features', None)

    app = Flask(__name__)
    app.config.update(config)
    Newsroom(app, {'features': features or {}})
    return app
