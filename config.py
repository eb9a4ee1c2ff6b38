"""
Centralized Configuration for Yishou CRM Backend
Manages environment-specific settings, database connection and reminder sweep settings.
"""
import os
from urllib.parse import quote_plus

from dotenv import load_dotenv

load_dotenv()


def build_database_url():
    """
    Resolve the PostgreSQL URL.

    DATABASE_URL wins; otherwise the URL is composed from DB_* variables.
    """
    url = os.environ.get('DATABASE_URL')
    if url:
        # Handle postgres:// vs postgresql:// URL format
        if url.startswith('postgres://'):
            url = url.replace('postgres://', 'postgresql://', 1)
        return url

    host = os.environ.get('DB_HOST', 'localhost')
    port = os.environ.get('DB_PORT', '5432')
    user = os.environ.get('DB_USER', 'postgres')
    password = os.environ.get('DB_PASSWORD', '')
    dbname = os.environ.get('DB_NAME', 'crm')
    sslmode = os.environ.get('DB_SSLMODE', 'disable')
    timezone = os.environ.get('DB_TIMEZONE', 'Asia/Shanghai')

    auth = quote_plus(user)
    if password:
        auth = f"{auth}:{quote_plus(password)}"

    return (
        f"postgresql://{auth}@{host}:{port}/{dbname}"
        f"?sslmode={sslmode}&options=-c%20timezone%3D{quote_plus(timezone)}"
    )


class Config:
    """Base configuration with defaults"""

    # Flask Settings
    MAX_CONTENT_LENGTH = 20 * 1024 * 1024  # 20MB max excel upload

    # Server Settings
    SERVER_PORT = int(os.environ.get('SERVER_PORT', '8081'))
    WEB_PATH = os.environ.get('WEB_PATH', 'web')
    SERVE_STATIC = os.environ.get('SERVE_STATIC', 'true').lower() == 'true'

    # CORS Settings
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')
    CORS_METHODS = ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS']
    CORS_ALLOW_HEADERS = ['Content-Type', 'Authorization', 'X-Requested-With']

    # Database Settings
    DATABASE_URL = build_database_url()
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # Business clock
    TIMEZONE = os.environ.get('TIMEZONE', 'Asia/Shanghai')

    # Reminder sweep
    REMINDER_SCHEDULER_ENABLED = os.environ.get('REMINDER_SCHEDULER_ENABLED', 'false').lower() == 'true'
    REMINDER_CHECK_INTERVAL = int(os.environ.get('REMINDER_CHECK_INTERVAL', '60'))  # seconds

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    LOG_FILE = os.environ.get('LOG_FILE', 'crm.log')
    LOG_DIR = os.environ.get('LOG_DIR', 'logs')


class DevelopmentConfig(Config):
    """Development-specific configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = 'DEBUG'
    # Allow all CORS in development
    CORS_ORIGINS = ['*']


class ProductionConfig(Config):
    """Production-specific configuration"""
    DEBUG = False
    TESTING = False
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')
    PREFERRED_URL_SCHEME = 'https'


class TestingConfig(Config):
    """Testing-specific configuration"""
    DEBUG = True
    TESTING = True
    SERVE_STATIC = False
    REMINDER_SCHEDULER_ENABLED = False


# Configuration selector
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}


def get_config():
    """Get configuration based on FLASK_ENV environment variable"""
    env = os.environ.get('FLASK_ENV', 'development')
    return config_by_name.get(env, DevelopmentConfig)
