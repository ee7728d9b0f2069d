import json
import logging
from functools import wraps
from flask import current_app, url_for, redirect, request, Response
from werkzeug.utils import import_string
from oauthlib.common import Request, add_params_to_uri
from oauthlib.oauth2.rfc6749.tokens import get_token_from_header
from crednet.oauth2.errors import (
    FATAL_ERRORS,
    AccessDeniedError,
    OAuth2Error,
    UnsupportedGrantTypeError,
)
from crednet.oauth2.server import AuthorizationServer


logger = logging.getLogger('crednet_oauth2')


TOKEN_HEADERS = {
    'Content-Type': 'application/json',
    'Cache-Control': 'no-store',
    'Pragma': 'no-cache',
}


def _get_uri_from_request():
    uri = request.base_url
    if request.query_string:
        uri += '?' + request.query_string.decode('utf-8')
    return uri


def _extract_params():
    uri = _get_uri_from_request()
    http_method = request.method
    headers = dict(request.headers)
    if 'wsgi.input' in headers:
        del headers['wsgi.input']
    if 'wsgi.errors' in headers:
        del headers['wsgi.errors']
    body = request.form.to_dict()
    return uri, http_method, body, headers


def _get_client_creds_from_request():
    if client_id := request.form.get('client_id'):
        return client_id, request.form.get('client_secret')

    auth = request.authorization
    if auth is not None and auth.type == 'basic':
        return auth.username, auth.password
    return None, None


def _create_response(headers, body, status):
    response = Response(body or '')
    for k, v in headers.items():
        response.headers[str(k)] = v
    response.status_code = status
    return response


def error_response(error):
    headers = {'Content-Type': 'application/json', **error.headers}
    return _create_response(headers, error.json, error.status_code)


def _load_callable(value):
    if value and not callable(value):
        return import_string(value)
    return value


class Provider:
    """Flask extension exposing an :class:`AuthorizationServer` over HTTP.

    The store is injected at construction; the identity store and the
    session lookup are bound with the ``usergetter`` and
    ``currentusergetter`` decorators before ``init_app``.
    """

    def __init__(self, app=None, store=None, server_class=None):
        self._store = store
        self._server_class = server_class or AuthorizationServer
        self._exception_handler = None
        self._invalid_response = None
        if app:
            self.init_app(app)

    def init_app(self, app):
        if self._store is None or \
           not hasattr(self, '_usergetter') or \
           not hasattr(self, '_currentusergetter'):
            raise RuntimeError('application not bound to required getters')

        app.extensions = getattr(app, 'extensions', {})
        app.extensions['oauth2.provider'] = self
        app.extensions['oauth2.server'] = self._create_server(app)

    def _create_server(self, app):
        config = app.config
        return self._server_class(
            self._store,
            self._usergetter,
            token_expires_in=config.get('OAUTH2_PROVIDER_TOKEN_EXPIRES_IN', 3600),
            grant_expires_in=config.get('OAUTH2_PROVIDER_GRANT_EXPIRES_IN', 600),
            token_generator=_load_callable(
                config.get('OAUTH2_PROVIDER_TOKEN_GENERATOR')
            ),
            refresh_token_generator=_load_callable(
                config.get('OAUTH2_PROVIDER_REFRESH_TOKEN_GENERATOR')
            ),
            revoke_on_code_replay=config.get('OAUTH2_PROVIDER_REVOKE_ON_CODE_REPLAY', False),
        )

    @property
    def server(self):
        return current_app.extensions['oauth2.server']

    @property
    def error_uri(self):
        if error_uri := current_app.config.get('OAUTH2_PROVIDER_ERROR_URI'):
            return error_uri
        if error_endpoint := current_app.config.get('OAUTH2_PROVIDER_ERROR_ENDPOINT'):
            return url_for(error_endpoint)
        return '/oauth/errors'

    def _on_exception(self, error, redirect_content=None):
        if self._exception_handler:
            return self._exception_handler(error, redirect_content)
        else:
            return redirect(redirect_content)

    def exception_handler(self, f):
        self._exception_handler = f
        return f

    def invalid_response(self, f):
        self._invalid_response = f
        return f

    def usergetter(self, f):
        self._usergetter = f
        return f

    def currentusergetter(self, f):
        self._currentusergetter = f
        return f

    def authorize_handler(self, f):
        """Validate the authorization request around a consent view.

        The view receives ``client``, ``scopes``, ``redirect_uri`` and
        ``state``. It may return a response (consent page, login redirect)
        or a bool: ``True`` issues a code, ``False`` denies access.
        """
        @wraps(f)
        def decorated(*args, **kwargs):
            server = self.server
            state = request.values.get('state')
            redirect_uri = request.values.get('redirect_uri')

            try:
                client, scopes = server.validate_authorization_request(
                    request.values.get('client_id'),
                    redirect_uri,
                    request.values.get('scope'),
                    request.values.get('response_type'),
                    state,
                )
            except FATAL_ERRORS as e:
                logger.debug(f'Fatal client error {e}', exc_info=True)
                return self._on_exception(e, e.in_uri(self.error_uri))
            except OAuth2Error as e:
                logger.debug(f'OAuth2Error: {e}', exc_info=True)
                if state and not e.state:
                    e.state = state
                return self._on_exception(e, e.in_uri(redirect_uri))

            kwargs.update(
                client=client,
                scopes=scopes,
                redirect_uri=redirect_uri,
                state=state,
            )
            ret = f(*args, **kwargs)

            if not isinstance(ret, bool):
                return ret
            if not ret:
                e = AccessDeniedError(
                    description='User denied authorization',
                    state=state,
                )
                return self._on_exception(e, e.in_uri(redirect_uri))
            return self.confirm_authorization_request(
                client, scopes, redirect_uri, state
            )

        return decorated

    def confirm_authorization_request(self, client, scopes, redirect_uri, state=None):
        try:
            code = self.server.authorize(
                self._currentusergetter(),
                client.client_id,
                scopes,
                redirect_uri,
            )
        except FATAL_ERRORS as e:
            logger.debug(f'Fatal client error {e}', exc_info=True)
            return self._on_exception(e, e.in_uri(self.error_uri))
        except OAuth2Error as e:
            logger.debug(f'OAuth2Error: {e}', exc_info=True)
            if state and not e.state:
                e.state = state
            return self._on_exception(e, e.in_uri(redirect_uri))

        params = [('code', code)]
        if state:
            params.append(('state', state))
        logger.debug('Authorization successful.')
        return redirect(add_params_to_uri(redirect_uri, params))

    def token_handler(self, f):
        @wraps(f)
        def decorated(*args, **kwargs):
            server = self.server
            grant_type = request.form.get('grant_type')
            client_id, client_secret = _get_client_creds_from_request()
            logger.debug(f'Token request {grant_type} from client {client_id}.')

            try:
                if grant_type == 'authorization_code':
                    token = server.exchange_code(
                        request.form.get('code'),
                        client_id,
                        client_secret,
                        request.form.get('redirect_uri'),
                    )
                elif grant_type == 'refresh_token':
                    token = server.refresh(
                        request.form.get('refresh_token'),
                        client_id,
                        client_secret,
                    )
                else:
                    raise UnsupportedGrantTypeError()
            except OAuth2Error as e:
                logger.debug(f'OAuth2Error: {e}')
                return error_response(e)

            token.update(f(*args, **kwargs) or {})
            return _create_response(TOKEN_HEADERS, json.dumps(token), 200)

        return decorated

    def revoke_handler(self, f):
        @wraps(f)
        def decorated(*args, **kwargs):
            try:
                self.server.revoke(
                    request.values.get('token'),
                    request.values.get('token_type_hint'),
                )
            except OAuth2Error as e:
                logger.debug(f'OAuth2Error: {e}')
                return error_response(e)
            return f(*args, **kwargs) or _create_response({}, '', 200)

        return decorated

    def require_oauth(self, *scopes):
        def wrapper(f):
            @wraps(f)
            def decorated(*args, **kwargs):
                if hasattr(request, 'oauth') and request.oauth:
                    return f(*args, **kwargs)
                access_token = get_token_from_header(Request(*_extract_params()))
                try:
                    request.oauth = self.server.validate_bearer_token(access_token, scopes)
                except OAuth2Error as e:
                    logger.debug(f'OAuth2Error: {e}')
                    if self._invalid_response:
                        return self._invalid_response(e)
                    return error_response(e)
                return f(*args, **kwargs)
            return decorated

        return wrapper
