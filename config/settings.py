"""Configuration classes, selected by FLASK_ENV."""
import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-me')

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL', 'sqlite:///' + os.path.join(BASE_DIR, 'labsite.db')
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session gate
    SESSION_IDLE_TIMEOUT = timedelta(minutes=int(os.environ.get('SESSION_IDLE_MINUTES', 10)))
    SESSION_REMEMBER_TIMEOUT = timedelta(days=30)
    PERMANENT_SESSION_LIFETIME = SESSION_REMEMBER_TIMEOUT
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # Uploaded publication documents
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER', os.path.join(BASE_DIR, 'storage', 'documents'))
    ALLOWED_DOCUMENT_EXTENSIONS = {'pdf', 'doc', 'docx'}
    MAX_DOCUMENT_SIZE = 5 * 1024 * 1024
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024

    APPROVAL_PANEL_PAGE_SIZE = 10

    # i18n
    BABEL_DEFAULT_LOCALE = 'en'
    LANGUAGES = ['en', 'fr']

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FILE = os.environ.get('LOG_FILE')
    LOG_RETENTION_DAYS = 14

    # Operator alerts, posted to Telegram when both are set
    TELEGRAM_API_KEY = os.environ.get('TELEGRAM_API_KEY')
    TELEGRAM_GROUP_ID = os.environ.get('TELEGRAM_GROUP_ID')
    ALERT_LEVEL = os.environ.get('ALERT_LEVEL', 'WARNING')


class DevelopmentConfig(Config):
    DEBUG = True


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    LOG_FILE = None
    LOG_LEVEL = 'WARNING'
    TELEGRAM_API_KEY = None
    TELEGRAM_GROUP_ID = None


class ProductionConfig(Config):
    SESSION_COOKIE_SECURE = True


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig,
}
