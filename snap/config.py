import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Base configuration class with all settings as static attributes."""

    # Core configuration
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-me'
    DEBUG = os.environ.get('FLASK_DEBUG', 'false').lower() == 'true'
    VERSION = '1.0.0'

    # Database configuration
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///snap_attendance.db'

    # Disable track modifications for performance
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # SQLAlchemy engine options
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_recycle": 3600,  # Recycle connections after 1 hour
        "pool_pre_ping": True,  # Check connection health before use
    }

    # Directory configuration
    BASE_DIR = os.path.dirname(os.path.abspath(__file__))
    LOG_DIR = os.environ.get('LOG_DIR') or os.path.join(BASE_DIR, 'logs')
    QR_CODE_FOLDER = os.environ.get('QR_CODE_FOLDER') or os.path.join(BASE_DIR, 'static/qrcodes')

    # Attendance sessions
    DEFAULT_SESSION_TTL_SECONDS = int(os.environ.get('DEFAULT_SESSION_TTL_SECONDS', 600))
    MAX_SESSION_TTL_SECONDS = 24 * 60 * 60

    # Logging
    ENABLE_FILE_LOGGING = True

    @staticmethod
    def validate():
        """Return a list of configuration problems (empty when the config is usable)."""
        return []


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    SQLALCHEMY_ECHO = os.environ.get('SQL_DEBUG', 'false').lower() == 'true'


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False

    SECRET_KEY = os.environ.get('SECRET_KEY')
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL')

    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_recycle": 3600,
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
    }

    @staticmethod
    def validate():
        issues = []
        if not os.environ.get('SECRET_KEY'):
            issues.append("SECRET_KEY environment variable must be set in production")
        if not os.environ.get('DATABASE_URL'):
            issues.append("DATABASE_URL environment variable must be set in production")
        return issues


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    ENABLE_FILE_LOGGING = False


# Configuration dictionary
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig
}
