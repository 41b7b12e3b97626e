# extensions.py
"""
Flask extensions initialization.
Extensions are created here without an app and bound to it in the application factory,
so models and services can import them without circular imports.
"""

import logging
import threading
import time

from flask import current_app
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from sqlalchemy import event, text

# Initialize extensions without app binding
db = SQLAlchemy()
migrate = Migrate()

# Connection monitoring
connection_stats = {
    'failed_checks': 0,
    'last_check': 0,
    'healthy': True
}
connection_lock = threading.Lock()

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_connection_stats():
    """
    Get current database connection statistics.

    Returns:
        dict: Connection statistics
    """
    with connection_lock:
        return connection_stats.copy()


def check_database_health():
    """
    Check if the database connection is healthy.
    Requires an active Flask application context.

    Returns:
        tuple: (bool, str) indicating health status and message
    """
    try:
        connection = db.engine.connect()
        try:
            connection.execute(text("SELECT 1")).fetchone()
        finally:
            connection.close()

        with connection_lock:
            connection_stats['healthy'] = True
            connection_stats['last_check'] = time.time()

        return True, "Database connection is healthy"

    except Exception as e:
        logger.error(f"Database health check failed: {e}")

        with connection_lock:
            connection_stats['healthy'] = False
            connection_stats['failed_checks'] += 1
            connection_stats['last_check'] = time.time()

        return False, f"Database connection failed: {str(e)}"


def init_extensions(app):
    """
    Initialize all extensions with the Flask app.

    Args:
        app: Flask application instance
    """
    # Database first, migrations depend on it
    db.init_app(app)
    migrate.init_app(app, db)

    # SQLite leaves foreign keys unenforced unless asked per connection
    with app.app_context():
        if db.engine.dialect.name == 'sqlite':
            event.listen(db.engine, 'connect', _enable_sqlite_foreign_keys)

    app.logger.info("Extensions initialized successfully")


def create_tables():
    """Create all tables for the bound database."""
    # Importing the models registers them on db.metadata
    from snap import models  # noqa: F401

    db.create_all()
    current_app.logger.info("Database tables created")
