"""Flask application factory."""
import logging
import os

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from kalkyle.database import init_db, db_session


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.json.sort_keys = False

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Error tracking in production
    sentry_dsn = app.config.get('SENTRY_DSN')
    if sentry_dsn and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=sentry_dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=app.config.get('ENV'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Prometheus request instrumentation
    from kalkyle.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Behind a reverse proxy in production
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    # Initialize database
    init_db(app)

    # Error Handlers
    from kalkyle.exceptions import KalkyleError

    @app.errorhandler(KalkyleError)
    def handle_kalkyle_error(error):
        """Handle custom application exceptions as JSON."""
        if error.status_code >= 500:
            app.logger.error(f"KalkyleError [{error.status_code}]: {error.message}")
        else:
            app.logger.info(f"KalkyleError [{error.status_code}] {request.method} {request.path}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'error': 'Ressurs ikke funnet', 'status': 'error'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Metoden er ikke tillatt', 'status': 'error'}), 405

    @app.errorhandler(Exception)
    def internal_error(error):
        if isinstance(error, HTTPException):
            return jsonify({'error': error.description, 'status': 'error'}), error.code
        app.logger.exception(f"Unhandled Exception: {error}")
        db_session.rollback()
        return jsonify({'error': 'Intern serverfeil', 'status': 'error'}), 500

    # Register blueprints
    from kalkyle.blueprints.main import main_bp
    from kalkyle.blueprints.auth import auth_bp
    from kalkyle.blueprints.quotes import quotes_bp
    from kalkyle.blueprints.catalog import catalog_bp
    from kalkyle.blueprints.calculations import calculations_bp
    from kalkyle.blueprints.settings import settings_bp
    from kalkyle.blueprints.metrics import metrics_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(quotes_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(calculations_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(metrics_bp)

    # Register CLI commands
    from kalkyle.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(f"Kalkyle started (env={app.config.get('ENV')})")
    return app
