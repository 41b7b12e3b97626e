# __init__.py
"""
Application factory for the Snap attendance check-in backend.
Creates and configures the Flask application using the application factory pattern.
"""

import os
import logging
from logging.handlers import RotatingFileHandler

from flask import Flask, jsonify
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

from snap.config import config_by_name
from snap.extensions import init_extensions, create_tables, db
from snap.models.base import utcnow


def setup_logging(app):
    """
    Configure structured logging for the application.

    Args:
        app: Flask application instance
    """
    log_format = logging.Formatter(
        '%(asctime)s %(levelname)s %(name)s %(threadName)s : %(message)s'
    )

    level = logging.DEBUG if app.debug else logging.INFO

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(log_format)
    console_handler.setLevel(level)

    handlers = [console_handler]

    # File handler with rotation
    if app.config.get('ENABLE_FILE_LOGGING', True):
        log_dir = app.config.get('LOG_DIR') or os.path.join(app.root_path, 'logs')
        os.makedirs(log_dir, exist_ok=True)

        file_handler = RotatingFileHandler(
            os.path.join(log_dir, 'app.log'),
            maxBytes=1024 * 1024 * 10,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(log_format)
        file_handler.setLevel(logging.INFO)
        handlers.append(file_handler)

    # Replace Flask's default handler and any left by earlier factory calls
    app.logger.setLevel(level)
    app.logger.handlers.clear()
    for handler in handlers:
        app.logger.addHandler(handler)

    # Service loggers share the application handlers
    for name in ('attendance_service', 'session_service', 'qr_code_service', 'api'):
        service_logger = logging.getLogger(name)
        service_logger.setLevel(level)
        service_logger.handlers.clear()
        for handler in handlers:
            service_logger.addHandler(handler)
        service_logger.propagate = False

    # Forcefully suppress SQLAlchemy logs
    sa_logger = logging.getLogger('sqlalchemy.engine')
    sa_logger.setLevel(logging.WARNING)
    sa_logger.propagate = False


def register_blueprints(app):
    """
    Register all application blueprints.

    Args:
        app: Flask application instance
    """
    from .controllers.api import api_bp

    app.register_blueprint(api_bp, url_prefix='/api')

    app.logger.info("All blueprints registered successfully")


def register_error_handlers(app):
    """
    Register global error handlers.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return jsonify({
            'success': False,
            'error': e.name,
            'message': e.description
        }), e.code

    @app.errorhandler(Exception)
    def handle_exception(e):
        app.logger.error(f"Unhandled exception: {str(e)}", exc_info=True)
        return jsonify({
            'success': False,
            'error': 'An unexpected error occurred',
            'message': str(e) if app.debug else 'Internal server error'
        }), 500


def register_shell_context(app):
    """
    Register shell context for flask shell command.

    Args:
        app: Flask application instance
    """

    @app.shell_context_processor
    def make_shell_context():
        from snap.models import Student, AttendanceSession, AttendanceRecord
        return {
            'db': db,
            'Student': Student,
            'AttendanceSession': AttendanceSession,
            'AttendanceRecord': AttendanceRecord
        }


def register_health_checks(app):
    """
    Register health check endpoints.

    Args:
        app: Flask application instance
    """

    @app.route('/health')
    def health_check():
        """Basic health check endpoint."""
        return jsonify({
            'status': 'ok',
            'timestamp': utcnow().isoformat(),
            'version': app.config.get('VERSION', '1.0.0')
        })

    @app.route('/health/database')
    def database_health_check():
        """Database health check endpoint."""
        from snap.extensions import check_database_health, get_connection_stats

        healthy, message = check_database_health()
        body = {
            'status': 'healthy' if healthy else 'unhealthy',
            'message': message,
            'stats': get_connection_stats(),
            'timestamp': utcnow().isoformat()
        }
        return jsonify(body), 200 if healthy else 503


def create_app(config_name=None):
    """
    Application factory function.

    Args:
        config_name (str): Configuration name ('development', 'production', 'testing')

    Returns:
        Flask: Configured Flask application instance
    """
    # Load environment variables
    load_dotenv()

    app = Flask(__name__)

    # Load configuration
    config_name = config_name or os.environ.get('FLASK_ENV', 'development')
    config_class = config_by_name[config_name]
    issues = config_class.validate()
    if issues:
        raise RuntimeError('; '.join(issues))
    app.config.from_object(config_class)

    # Setup logging first
    setup_logging(app)
    app.logger.info(f"Starting application with config: {config_name}")

    init_extensions(app)

    register_blueprints(app)
    register_error_handlers(app)
    register_shell_context(app)
    register_health_checks(app)

    # Register CLI commands
    from .cli import register_cli_commands
    register_cli_commands(app)

    if app.config.get('TESTING'):
        with app.app_context():
            create_tables()

    app.logger.info("Application factory completed successfully")

    return app
