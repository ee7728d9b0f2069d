# Tests for the Provider extension hooks on a bare Flask app

import string
from types import SimpleNamespace
from urllib.parse import parse_qs, urlparse

import pytest
from flask import Flask, jsonify, request

from crednet.oauth2.errors import StoreUnavailableError
from crednet.oauth2.provider import Provider
from crednet.oauth2.server import AuthorizationServer
from crednet.oauth2.store import MemoryStore

REDIRECT_URI = 'https://app.example/cb'


class RecordingServer(AuthorizationServer):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.issued = []

    def authorize(self, user_id, client_id, scopes, redirect_uri):
        code = super().authorize(user_id, client_id, scopes, redirect_uri)
        self.issued.append(code)
        return code


def _query(response):
    return {k: v[0] for k, v in parse_qs(urlparse(response.headers['Location']).query).items()}


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def make_app(store):
    def make_app(server_class=None, **config):
        provider = Provider(store=store, server_class=server_class)
        users = {'u1': SimpleNamespace(display_name='Alice')}
        provider.usergetter(users.get)
        provider.currentusergetter(lambda: 'u1')

        app = Flask(__name__)
        app.config.update(TESTING=True, **config)
        provider.init_app(app)

        @app.route('/authorize', methods=['GET', 'POST'])
        @provider.authorize_handler
        def authorize(*args, **kwargs):
            return request.values.get('confirm') == 'yes'

        @app.route('/token', methods=['POST'])
        @provider.token_handler
        def token():
            return None

        @app.route('/me')
        @provider.require_oauth('profile')
        def me():
            return jsonify(sub=request.oauth.user_id)

        app.provider = provider
        return app
    return make_app


def _register(app):
    with app.app_context():
        return app.provider.server.register_client(
            'owner-1', 'Example App', [REDIRECT_URI], scopes=['profile'],
        )


def _exchange(http, client, code):
    return http.post('/token', data={
        'grant_type': 'authorization_code',
        'code': code,
        'client_id': client['client_id'],
        'client_secret': client['client_secret'],
        'redirect_uri': REDIRECT_URI,
    })


def test_init_app_requires_getters(store):
    with pytest.raises(RuntimeError):
        Provider(Flask(__name__), store=store)


def test_server_class(make_app):
    app = make_app(server_class=RecordingServer)
    client = _register(app)

    response = app.test_client().post('/authorize', data={
        'client_id': client['client_id'],
        'redirect_uri': REDIRECT_URI,
        'scope': 'profile',
        'response_type': 'code',
        'confirm': 'yes',
    })

    server = app.extensions['oauth2.server']
    assert isinstance(server, RecordingServer)
    assert server.issued == [_query(response)['code']]


def test_token_generators_from_import_strings(make_app):
    app = make_app(
        OAUTH2_PROVIDER_TOKEN_GENERATOR='secrets.token_hex',
        OAUTH2_PROVIDER_REFRESH_TOKEN_GENERATOR='secrets.token_urlsafe',
    )
    client = _register(app)
    http = app.test_client()
    code = _query(http.post('/authorize', data={
        'client_id': client['client_id'],
        'redirect_uri': REDIRECT_URI,
        'response_type': 'code',
        'confirm': 'yes',
    }))['code']

    tokens = _exchange(http, client, code).get_json()

    assert not tokens['access_token'].startswith('crnat_')
    assert set(tokens['access_token']) <= set(string.hexdigits)
    assert not tokens['refresh_token'].startswith('crnrt_')


def test_token_generator_callable(make_app):
    app = make_app(OAUTH2_PROVIDER_TOKEN_GENERATOR=lambda: 'crnat_fixed')
    client = _register(app)
    http = app.test_client()
    code = _query(http.post('/authorize', data={
        'client_id': client['client_id'],
        'redirect_uri': REDIRECT_URI,
        'response_type': 'code',
        'confirm': 'yes',
    }))['code']

    assert _exchange(http, client, code).get_json()['access_token'] == 'crnat_fixed'


def test_exception_handler_on_deny(make_app):
    app = make_app()
    calls = []

    @app.provider.exception_handler
    def handle(error, redirect_content):
        calls.append((error.error, redirect_content))
        return jsonify(error=error.error), 403

    client = _register(app)
    response = app.test_client().post('/authorize', data={
        'client_id': client['client_id'],
        'redirect_uri': REDIRECT_URI,
        'state': 'xyz',
        'response_type': 'code',
        'confirm': 'no',
    })

    assert response.status_code == 403
    assert response.get_json() == {'error': 'access_denied'}
    error, location = calls[0]
    assert error == 'access_denied'
    assert location.startswith(REDIRECT_URI)
    assert 'state=xyz' in location


def test_invalid_response(make_app):
    app = make_app()

    @app.provider.invalid_response
    def invalid(error):
        return jsonify(message=f'rejected: {error.error}'), 401

    response = app.test_client().get('/me', headers={'Authorization': 'Bearer crnat_missing'})

    assert response.status_code == 401
    assert response.get_json() == {'message': 'rejected: invalid_token'}


def test_store_outage_goes_to_error_uri(make_app, store, monkeypatch):
    app = make_app(OAUTH2_PROVIDER_ERROR_URI='https://provider.example/errors')

    def unavailable(client_id):
        raise StoreUnavailableError()
    monkeypatch.setattr(store, 'get_client', unavailable)

    response = app.test_client().get('/authorize', query_string={
        'client_id': 'crn_any',
        'redirect_uri': 'https://evil.example/steal',
        'state': 's',
        'response_type': 'code',
    })

    assert response.status_code == 302
    assert response.headers['Location'].startswith('https://provider.example/errors')
    assert _query(response)['error'] == 'temporarily_unavailable'
