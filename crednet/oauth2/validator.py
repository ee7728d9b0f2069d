import logging
from oauthlib.common import safe_string_equals
from crednet.oauth2.errors import (
    InsufficientScopeError,
    InvalidClientError,
    InvalidGrantError,
    InvalidRedirectURIError,
    InvalidScopeError,
    InvalidTokenError,
    MissingRedirectURIError,
)


logger = logging.getLogger('crednet_oauth2')


class Validator:
    def __init__(self, store):
        self.store = store

    def validate_client_id(self, client_id):
        logger.debug(f'Validate client {client_id}')
        client = self.store.get_client(client_id)
        if client is None or not client.active:
            logger.debug('Client not found or inactive.')
            raise InvalidClientError()
        return client

    def authenticate_client(self, client_id, client_secret):
        logger.debug(f'Authenticate client {client_id}')
        client = self.validate_client_id(client_id)
        if not client_secret or not safe_string_equals(client.client_secret, client_secret):
            logger.debug('Authenticate client failed, secret not match.')
            raise InvalidClientError()
        logger.debug('Authenticate client success.')
        return client

    def validate_redirect_uri(self, client, redirect_uri):
        if not redirect_uri:
            raise MissingRedirectURIError()
        if redirect_uri not in client.redirect_uris:
            logger.debug(f'Redirect uri {redirect_uri} not registered for client {client.client_id}.')
            raise InvalidRedirectURIError()

    def validate_scopes(self, client, scopes, state=None):
        if disallowed := [s for s in scopes if s not in client.allowed_scopes]:
            logger.debug(f'Scopes {disallowed} not allowed for client {client.client_id}.')
            raise InvalidScopeError(
                description=f'Scope not allowed: {" ".join(disallowed)}',
                state=state,
            )

    def validate_code(self, grant, now):
        if grant is None:
            logger.debug('Grant not found.')
            raise InvalidGrantError(description='Invalid authorization code.')
        if grant.used:
            logger.debug(f'Grant for client {grant.client_id} already used.')
            raise InvalidGrantError(description='Authorization code already used.')
        if now > grant.expires:
            logger.debug('Grant is expired.')
            raise InvalidGrantError(description='Authorization code expired.')
        return grant

    def confirm_redirect_uri(self, grant, redirect_uri):
        logger.debug(f'Compare redirect uri for grant {grant.redirect_uri} and {redirect_uri}.')
        if grant.redirect_uri != redirect_uri:
            raise InvalidGrantError(description='Redirect URI mismatch.')

    def validate_refresh_token(self, refresh_token):
        if refresh_token:
            if token := self.store.get_token(refresh_token=refresh_token):
                return token
        logger.debug('Refresh token not found.')
        raise InvalidGrantError(description='Invalid refresh token.')

    def validate_bearer_token(self, access_token, now, scopes=()):
        if access_token:
            token = self.store.get_token(access_token=access_token)
        else:
            token = None

        if token is None:
            logger.debug('Bearer token not found')
            raise InvalidTokenError(description='Bearer token not found.')
        if token.revoked:
            logger.debug('Bearer token is revoked')
            raise InvalidTokenError(description='Bearer token is revoked.')
        if now > token.expires:
            logger.debug('Bearer token is expired')
            raise InvalidTokenError(description='Bearer token is expired.')
        if scopes and not set(token.scopes).issuperset(scopes):
            logger.debug('Bearer token scope not valid')
            raise InsufficientScopeError()
        return token
