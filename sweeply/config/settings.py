"""
Configuration settings for different environments
"""
import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


def _database_url(default):
    """Read DATABASE_URL, fixing postgres:// to postgresql:// for SQLAlchemy 2.x"""
    url = os.environ.get('DATABASE_URL') or default
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    """Base configuration"""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database
    SQLALCHEMY_DATABASE_URI = _database_url('sqlite:///sweeply.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # API
    API_PREFIX = '/api'

    # JWT Authentication
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or SECRET_KEY
    JWT_ALGORITHM = 'HS256'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.environ.get('JWT_EXPIRES_HOURS', 24)))

    # CORS
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')

    # Pagination
    ITEMS_PER_PAGE = 20
    MAX_ITEMS_PER_PAGE = 100

    # Recurring jobs
    RECURRING_HORIZON_MONTHS = int(os.environ.get('RECURRING_HORIZON_MONTHS', 3))
    RECURRING_REFRESH_HOURS = int(os.environ.get('RECURRING_REFRESH_HOURS', 6))
    ENABLE_SCHEDULER = os.environ.get('ENABLE_SCHEDULER', '').lower() == 'true'

    # Scheduling
    DEFAULT_JOB_DURATION_MINUTES = 120
    UPCOMING_DAYS = 7

    # Rate limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL') or 'memory://'
    RATELIMIT_DEFAULT = '100 per minute'

    # Logging / monitoring
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    SENTRY_DSN = os.environ.get('SENTRY_DSN')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    SQLALCHEMY_DATABASE_URI = _database_url('postgresql://localhost/sweeply')
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 20,
        'max_overflow': 40,
        'pool_recycle': 3600,
        'pool_pre_ping': True,
    }


class TestingConfig(Config):
    """Testing configuration with isolated database and safe defaults"""
    TESTING = True
    DEBUG = False

    # Use in-memory SQLite for fast tests
    SQLALCHEMY_DATABASE_URI = os.getenv('TEST_DATABASE_URL', 'sqlite:///:memory:')

    JWT_SECRET_KEY = 'test-jwt-secret'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=5)

    # Disable rate limiting in tests
    RATELIMIT_ENABLED = False

    ENABLE_SCHEDULER = False
    SENTRY_DSN = None
    LOG_LEVEL = 'WARNING'


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
