import logging
from datetime import datetime, timedelta, timezone
from oauthlib.common import generate_token
from oauthlib.oauth2.rfc6749.utils import list_to_scope, scope_to_list
from oauthlib.uri_validate import is_absolute_uri
from werkzeug.security import gen_salt
from crednet.oauth2.claims import project_user_info
from crednet.oauth2.errors import (
    InvalidGrantError,
    InvalidClientError,
    InvalidRequestError,
    InvalidScopeError,
    InvalidTokenError,
    NotFoundError,
    UnauthenticatedError,
    UnsupportedResponseTypeError,
)
from crednet.oauth2.validator import Validator


logger = logging.getLogger('crednet_oauth2')


SCOPES = ('profile', 'email', 'symbolic_name', 'tokens', 'reputation')

DEFAULT_CLIENT_SCOPES = ('profile', 'email', 'symbolic_name')

RESPONSE_TYPES = ('code',)

GRANT_TYPES = ('authorization_code', 'refresh_token')

TOKEN_EXPIRES_IN = 3600

GRANT_EXPIRES_IN = 600


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_client_id():
    return 'crn_' + gen_salt(40)


def generate_client_secret():
    return 'crns_' + gen_salt(60)


def generate_authorization_code():
    return 'crnauth_' + generate_token(40)


def generate_access_token():
    return 'crnat_' + generate_token(40)


def generate_refresh_token():
    return 'crnrt_' + generate_token(48)


def _unique(items):
    return list(dict.fromkeys(items))


def _scopes(scope):
    return _unique(s for s in scope_to_list(scope) or () if s)


class AuthorizationServer:
    """OAuth2 authorization-code grant over a :class:`~crednet.oauth2.store.Store`.

    ``usergetter`` resolves a user id into the identity record used for the
    user-info projection. ``clock`` returns naive UTC datetimes; every expiry
    is checked lazily against it.
    """

    def __init__(
        self,
        store,
        usergetter,
        token_expires_in=TOKEN_EXPIRES_IN,
        grant_expires_in=GRANT_EXPIRES_IN,
        token_generator=None,
        refresh_token_generator=None,
        revoke_on_code_replay=False,
        clock=utcnow,
    ):
        self.store = store
        self.validator = Validator(store)
        self._usergetter = usergetter
        self.token_expires_in = token_expires_in
        self.grant_expires_in = grant_expires_in
        self.token_generator = token_generator or generate_access_token
        self.refresh_token_generator = refresh_token_generator or generate_refresh_token
        self.revoke_on_code_replay = revoke_on_code_replay
        self.clock = clock

    # Client registry

    def register_client(self, owner_id, name, redirect_uris, logo_url=None, scopes=None):
        if owner_id is None:
            raise UnauthenticatedError()
        if not name or not isinstance(name, str):
            raise InvalidRequestError(description='Client name is required.')
        if logo_url is not None and not isinstance(logo_url, str):
            raise InvalidRequestError(description='Logo URL must be a string.')
        if not isinstance(redirect_uris or [], (list, tuple)) or \
           not all(isinstance(uri, str) for uri in redirect_uris or ()):
            raise InvalidRequestError(description='Redirect URIs must be a list of strings.')
        if scopes is not None and (
            not isinstance(scopes, (str, list, tuple)) or
            not all(isinstance(s, str) for s in scopes)
        ):
            raise InvalidRequestError(description='Scopes must be a string or a list of strings.')

        redirect_uris = _unique(uri.strip() for uri in redirect_uris or () if uri and uri.strip())
        if not redirect_uris:
            raise InvalidRequestError(description='At least one redirect URI is required.')
        for uri in redirect_uris:
            if not is_absolute_uri(uri) or '#' in uri:
                raise InvalidRequestError(description=f'Invalid redirect URI: {uri}')

        scopes = list(DEFAULT_CLIENT_SCOPES) if scopes is None else _scopes(scopes)
        if unknown := [s for s in scopes if s not in SCOPES]:
            raise InvalidScopeError(description=f'Unknown scope: {" ".join(unknown)}')

        client_secret = generate_client_secret()
        client = self.store.create_client(
            client_id=generate_client_id(),
            client_secret=client_secret,
            name=name,
            logo_url=logo_url or '',
            redirect_uris=redirect_uris,
            allowed_scopes=scopes,
            owner_id=owner_id,
            active=True,
            created_at=self.clock(),
        )
        logger.info(f'Registered client {client.client_id} for owner {owner_id}.')
        return {
            'client_id': client.client_id,
            'client_secret': client_secret,
        }

    def get_client(self, client_id):
        client = self.store.get_client(client_id)
        if client is None or not client.active:
            raise NotFoundError(description='Invalid client ID.')
        return client

    def list_clients(self, owner_id):
        if owner_id is None:
            raise UnauthenticatedError()
        return [
            {
                'client_id': client.client_id,
                'name': client.name,
                'logo_url': client.logo_url,
                'redirect_uris': client.redirect_uris,
                'scopes': client.allowed_scopes,
                'active': client.active,
                'created_at': client.created_at.isoformat(),
            }
            for client in self.store.list_clients(owner_id)
        ]

    def deactivate_client(self, owner_id, client_id):
        if owner_id is None:
            raise UnauthenticatedError()
        client = self.store.get_client(client_id)
        if client is None or client.owner_id != owner_id:
            raise NotFoundError(description='Invalid client ID.')
        if client.active:
            self.store.deactivate_client(client)
            self._revoke(self.store.find_tokens(client_id=client_id))
            logger.info(f'Deactivated client {client_id}.')

    # Authorization codes

    def validate_authorization_request(
        self,
        client_id,
        redirect_uri,
        scope=None,
        response_type='code',
        state=None,
    ):
        client = self.validator.validate_client_id(client_id)
        self.validator.validate_redirect_uri(client, redirect_uri)
        if response_type not in RESPONSE_TYPES:
            raise UnsupportedResponseTypeError(state=state)
        scopes = _scopes(scope) or client.allowed_scopes
        self.validator.validate_scopes(client, scopes, state=state)
        return client, scopes

    def authorize(self, user_id, client_id, scopes, redirect_uri):
        if user_id is None:
            raise UnauthenticatedError()
        client = self.validator.validate_client_id(client_id)
        self.validator.validate_redirect_uri(client, redirect_uri)
        scopes = _scopes(scopes)
        self.validator.validate_scopes(client, scopes)

        now = self.clock()
        grant = self.store.create_grant(
            code=generate_authorization_code(),
            user_id=user_id,
            client_id=client.client_id,
            scopes=scopes,
            redirect_uri=redirect_uri,
            expires=now + timedelta(seconds=self.grant_expires_in),
            used=False,
            created_at=now,
        )
        logger.info(f'Issued authorization code for client {client.client_id} and user {user_id}.')
        return grant.code

    # Tokens

    def exchange_code(self, code, client_id, client_secret, redirect_uri):
        now = self.clock()
        grant = self.store.get_grant(code)
        if grant is not None and grant.used and self.revoke_on_code_replay:
            self._revoke(self.store.find_tokens(grant_code=grant.code))
            logger.warning(f'Authorization code replayed for client {grant.client_id}, tokens revoked.')
        self.validator.validate_code(grant, now)

        client = self.validator.authenticate_client(client_id, client_secret)
        if grant.client_id != client.client_id:
            raise InvalidGrantError(description='Authorization code was issued to another client.')
        self.validator.confirm_redirect_uri(grant, redirect_uri)

        token = self.store.redeem_grant(
            grant.code,
            access_token=self.token_generator(),
            refresh_token=self.refresh_token_generator(),
            token_type='Bearer',
            user_id=grant.user_id,
            client_id=grant.client_id,
            grant_code=grant.code,
            scopes=grant.scopes,
            expires=now + timedelta(seconds=self.token_expires_in),
            revoked=False,
            revoked_at=None,
            created_at=now,
        )
        if token is None:
            logger.debug('Lost redemption race, code already used.')
            raise InvalidGrantError(description='Authorization code already used.')

        logger.info(f'Issued tokens for client {token.client_id} and user {token.user_id}.')
        return {
            'access_token': token.access_token,
            'token_type': token.token_type,
            'expires_in': self.token_expires_in,
            'refresh_token': token.refresh_token,
            'scope': list_to_scope(token.scopes),
        }

    def refresh(self, refresh_token, client_id, client_secret):
        token = self.validator.validate_refresh_token(refresh_token)
        if token.client_id != client_id:
            logger.debug('Refresh token belongs to another client.')
            raise InvalidClientError()
        self.validator.authenticate_client(client_id, client_secret)
        if token.revoked:
            raise InvalidGrantError(description='Grant has been revoked.')

        now = self.clock()
        token = self.store.update_token(
            token,
            access_token=self.token_generator(),
            expires=now + timedelta(seconds=self.token_expires_in),
        )
        logger.info(f'Refreshed access token for client {token.client_id} and user {token.user_id}.')
        return {
            'access_token': token.access_token,
            'token_type': token.token_type,
            'expires_in': self.token_expires_in,
            'scope': list_to_scope(token.scopes),
        }

    def validate_bearer_token(self, access_token, scopes=()):
        return self.validator.validate_bearer_token(access_token, self.clock(), scopes)

    def get_user_info(self, access_token):
        token = self.validate_bearer_token(access_token)
        user = self._usergetter(token.user_id)
        if user is None:
            raise InvalidTokenError(description='User not found.')
        return project_user_info(token.user_id, user, token.scopes)

    def revoke(self, token, token_type_hint=None):
        if not token:
            return
        found = None
        if token_type_hint != 'refresh_token':
            found = self.store.get_token(access_token=token)
        if found is None:
            found = self.store.get_token(refresh_token=token)
        if found is None:
            logger.debug('Revoke requested for unknown token.')
            return
        self._revoke([found])

    def list_authorized_apps(self, user_id):
        if user_id is None:
            raise UnauthenticatedError()
        apps = []
        for token in self.store.find_tokens(user_id=user_id):
            if token.revoked:
                continue
            if client := self.store.get_client(token.client_id):
                apps.append({
                    'client_id': client.client_id,
                    'client_name': client.name,
                    'client_logo': client.logo_url,
                    'scopes': token.scopes,
                    'authorized_at': token.created_at.isoformat(),
                })
        return apps

    def revoke_app(self, user_id, client_id):
        if user_id is None:
            raise UnauthenticatedError()
        if self.store.get_client(client_id) is None:
            raise NotFoundError(description='Invalid client ID.')
        self._revoke(self.store.find_tokens(user_id=user_id, client_id=client_id))
        logger.info(f'User {user_id} revoked access for client {client_id}.')

    def _revoke(self, tokens):
        if tokens := [t for t in tokens if not t.revoked]:
            self.store.revoke_tokens(tokens, self.clock())
            logger.info(f'Revoked {len(tokens)} token(s).')

    # Maintenance

    def purge_expired(self):
        count = self.store.purge_expired(self.clock())
        logger.info(f'Purged {count} expired authorization code(s).')
        return count

    def metadata(self, issuer, endpoints):
        return {
            'issuer': issuer,
            **endpoints,
            'scopes_supported': list(SCOPES),
            'response_types_supported': list(RESPONSE_TYPES),
            'grant_types_supported': list(GRANT_TYPES),
            'token_endpoint_auth_methods_supported': [
                'client_secret_post',
                'client_secret_basic',
            ],
        }
