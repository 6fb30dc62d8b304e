import os

class BaseConfig:
    SECRET_KEY = os.getenv('SECRET_KEY', 'change-me')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///camrent.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = False

    # Deployment base path, e.g. '/rentals'. Empty means mounted at root.
    BASE_PATH = os.getenv('BASE_PATH', '')

    AUTH_PROVIDER_URL = os.getenv('AUTH_PROVIDER_URL', '')
    AUTH_PROVIDER_KEY = os.getenv('AUTH_PROVIDER_KEY', '')
    AUTH_PROVIDER_TIMEOUT = int(os.getenv('AUTH_PROVIDER_TIMEOUT', '10'))

class DevConfig(BaseConfig):
    DEBUG = True
    ENV = 'development'

class ProdConfig(BaseConfig):
    DEBUG = False
    ENV = 'production'
    SESSION_COOKIE_SECURE = True

class TestConfig(BaseConfig):
    TESTING = True
    ENV = 'testing'
    SECRET_KEY = 'test'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    BASE_PATH = ''
    AUTH_PROVIDER_URL = 'https://auth.test/auth/v1'
    AUTH_PROVIDER_KEY = 'key'
