from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from crednet import create_app
from crednet.models import User
from crednet.models.ext import db
from crednet.oauth2.server import AuthorizationServer
from crednet.oauth2.store import MemoryStore

REDIRECT_URI = 'https://app.example/cb'


class Clock:
    def __init__(self, now=None):
        self.now = now or datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def users():
    return {
        'u1': SimpleNamespace(
            display_name='Alice',
            email='alice@example.com',
            email_verified=True,
            symbolic_name='§(alice)',
            photo_url='https://cdn.example/alice.png',
            token_balance=120,
            reputation='gold',
            breadcrumb_score=42,
        ),
        'u2': SimpleNamespace(),
    }


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def server(store, users, clock):
    return AuthorizationServer(store, users.get, clock=clock)


@pytest.fixture
def registered(server):
    """A client allowed ``profile`` and ``email`` on REDIRECT_URI."""
    return server.register_client(
        'owner-1',
        'Example App',
        [REDIRECT_URI],
        logo_url='https://app.example/logo.png',
        scopes=['profile', 'email'],
    )


@pytest.fixture
def issue_tokens(server, registered):
    def issue(scopes='profile', user_id='u1'):
        code = server.authorize(user_id, registered['client_id'], scopes, REDIRECT_URI)
        return server.exchange_code(
            code,
            registered['client_id'],
            registered['client_secret'],
            REDIRECT_URI,
        )
    return issue


# ---------------------------------------------------------------------------
# Flask application
# ---------------------------------------------------------------------------


@pytest.fixture
def app(monkeypatch):
    monkeypatch.setenv('CREDNET_APP_ENV', 'testing')
    app = create_app({
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'OAUTH2_PROVIDER_LOG_LEVEL': 'DEBUG',
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def http(app):
    return app.test_client()


@pytest.fixture
def alice(app):
    user = User(
        username='alice',
        display_name='Alice',
        email='alice@example.com',
        email_verified=True,
        symbolic_name='§(alice)',
        token_balance=120,
        reputation='gold',
        breadcrumb_score=42,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def login(http):
    def login(username='alice'):
        return http.post('/', data={'username': username})
    return login
