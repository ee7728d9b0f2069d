from datetime import timedelta
from werkzeug.security import gen_salt


class Development:
    DEBUG = True
    SECRET_KEY = gen_salt(64)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SECURE = False
    PERMANENT_SESSION_LIFETIME = timedelta(minutes=5)
    SQLALCHEMY_DATABASE_URI = 'sqlite:///crednet.db'
    OAUTH2_PROVIDER_TOKEN_EXPIRES_IN = 3600
    OAUTH2_PROVIDER_GRANT_EXPIRES_IN = 600
    OAUTH2_PROVIDER_REVOKE_ON_CODE_REPLAY = False
    OAUTH2_PROVIDER_LOG_LEVEL = 'DEBUG'
