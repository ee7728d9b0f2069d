from oauthlib.oauth2.rfc6749.errors import (
    AccessDeniedError,
    FatalClientError,
    InsufficientScopeError,
    InvalidClientError,
    InvalidGrantError,
    InvalidRedirectURIError,
    InvalidRequestError,
    InvalidScopeError,
    InvalidTokenError,
    MissingRedirectURIError,
    OAuth2Error,
    TemporarilyUnavailableError,
    UnsupportedGrantTypeError,
    UnsupportedResponseTypeError,
)


class UnauthenticatedError(OAuth2Error):
    error = 'unauthenticated'
    status_code = 401
    description = 'A signed in user is required.'


class NotFoundError(OAuth2Error):
    error = 'not_found'
    status_code = 404
    description = 'The requested resource does not exist.'


class StoreUnavailableError(TemporarilyUnavailableError):
    status_code = 503
    description = 'The authorization store is temporarily unavailable.'


# Errors raised before the redirect URI is trusted; these must never be
# delivered to the client's redirect URI.
FATAL_ERRORS = (FatalClientError, InvalidClientError, StoreUnavailableError)


__all__ = [
    'AccessDeniedError',
    'FATAL_ERRORS',
    'FatalClientError',
    'InsufficientScopeError',
    'InvalidClientError',
    'InvalidGrantError',
    'InvalidRedirectURIError',
    'InvalidRequestError',
    'InvalidScopeError',
    'InvalidTokenError',
    'MissingRedirectURIError',
    'NotFoundError',
    'OAuth2Error',
    'StoreUnavailableError',
    'UnauthenticatedError',
    'UnsupportedGrantTypeError',
    'UnsupportedResponseTypeError',
]
