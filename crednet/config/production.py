from os import getenv
from datetime import timedelta
from werkzeug.security import gen_salt


class Production:
    DEBUG = False
    SECRET_KEY = getenv('CREDNET_SECRET_KEY') or gen_salt(64)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SECURE = True
    PERMANENT_SESSION_LIFETIME = timedelta(minutes=5)
    SQLALCHEMY_DATABASE_URI = getenv('DATABASE_URL', 'sqlite:///crednet.db')
    OAUTH2_PROVIDER_TOKEN_EXPIRES_IN = 3600
    OAUTH2_PROVIDER_GRANT_EXPIRES_IN = 600
    OAUTH2_PROVIDER_REVOKE_ON_CODE_REPLAY = True
    OAUTH2_PROVIDER_LOG_LEVEL = 'INFO'
