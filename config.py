"""
Application Configuration

Centralizes all Flask and application configuration settings.
"""

import os

from dotenv import load_dotenv

# Base directory of the application
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

load_dotenv(os.path.join(BASE_DIR, '.env'))


def _env_float(name, default):
    try:
        return float(os.environ.get(name, default))
    except (TypeError, ValueError):
        return float(default)


def _env_int(name, default):
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return int(default)


class Config:
    """Base configuration class."""

    # Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-only-change-in-production')

    # SQLAlchemy settings
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///dietcoach.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # AI generation (OpenAI)
    OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY', '')
    OPENAI_MODEL = os.environ.get('OPENAI_MODEL', 'gpt-4o-mini')
    OPENAI_TEMPERATURE = _env_float('OPENAI_TEMPERATURE', 0.7)
    OPENAI_TIMEOUT = _env_float('OPENAI_TIMEOUT', 30)  # seconds per attempt
    OPENAI_MAX_ATTEMPTS = _env_int('OPENAI_MAX_ATTEMPTS', 3)
    OPENAI_BACKOFF_BASE = _env_float('OPENAI_BACKOFF_BASE', 2.0)  # 2s, 4s, 8s

    # External recipe search (Edamam)
    EDAMAM_APP_ID = os.environ.get('EDAMAM_APP_ID', '')
    EDAMAM_APP_KEY = os.environ.get('EDAMAM_APP_KEY', '')
    EDAMAM_ACCOUNT_USER = os.environ.get('EDAMAM_ACCOUNT_USER', '')
    EDAMAM_BASE_URL = os.environ.get('EDAMAM_BASE_URL', 'https://api.edamam.com/api/recipes/v2')
    EDAMAM_TIMEOUT = _env_float('EDAMAM_TIMEOUT', 10)
    SEARCH_CACHE_TTL = _env_int('SEARCH_CACHE_TTL', 24 * 60 * 60)
    SEARCH_CACHE_MAX_ENTRIES = _env_int('SEARCH_CACHE_MAX_ENTRIES', 1000)

    # Recipe matcher weights
    MATCH_DISTANCE_METRIC = os.environ.get('MATCH_DISTANCE_METRIC', 'euclidean')
    MATCH_PREFERRED_TAG_BONUS = _env_float('MATCH_PREFERRED_TAG_BONUS', 5)
    MATCH_AVOIDED_TAG_PENALTY = _env_float('MATCH_AVOIDED_TAG_PENALTY', 5)
    MATCH_SATIETY_PENALTY = _env_float('MATCH_SATIETY_PENALTY', 10)
    MATCH_ACCEPTANCE_THRESHOLD = _env_float('MATCH_ACCEPTANCE_THRESHOLD', 80)

    # Which WeeklyIntent a generation run consumes:
    #   'latest_on_or_before' - most recent intent whose week starts on or before the plan
    #   'latest'              - most recent intent overall
    WEEKLY_INTENT_POLICY = os.environ.get('WEEKLY_INTENT_POLICY', 'latest_on_or_before')

    DEFAULT_MEALS_PER_DAY = 4

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    OPENAI_API_KEY = 'test-key'
    EDAMAM_APP_ID = 'test-app'
    EDAMAM_APP_KEY = 'test-key'
    LOG_LEVEL = 'WARNING'


# Configuration dictionary for easy access
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config(env=None):
    """Get configuration based on environment."""
    if env is None:
        env = os.environ.get('FLASK_ENV', 'development')
    return config.get(env, config['default'])


# Logging configuration applied through logging.config.dictConfig
LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s %(levelname)-8s %(name)s: %(message)s',
            'datefmt': '%Y-%m-%d %H:%M:%S',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
            'stream': 'ext://sys.stderr',
        },
    },
    'loggers': {
        'dietcoach': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
}
