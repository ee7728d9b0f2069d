import logging
from contextlib import contextmanager
from threading import Lock
from types import SimpleNamespace
from sqlalchemy import update
from sqlalchemy.exc import DisconnectionError, OperationalError, SQLAlchemyError
from crednet.models import Client, Grant, Token
from crednet.oauth2.errors import StoreUnavailableError


logger = logging.getLogger('crednet_oauth2')


class Store:
    """Keyed storage for clients, authorization codes and tokens.

    Records are returned as objects exposing the model attributes
    (``client_id``, ``scopes``, ``redirect_uris``...). ``redeem_grant`` must
    be atomic: at most one caller ever wins a given code.
    """

    def get_client(self, client_id):
        raise NotImplementedError

    def create_client(self, **fields):
        raise NotImplementedError

    def list_clients(self, owner_id):
        raise NotImplementedError

    def deactivate_client(self, client):
        raise NotImplementedError

    def get_grant(self, code):
        raise NotImplementedError

    def create_grant(self, **fields):
        raise NotImplementedError

    def redeem_grant(self, code, **token_fields):
        """Mark ``code`` used and persist a token built from ``token_fields``.

        Returns the token, or ``None`` when the code was already used.
        """
        raise NotImplementedError

    def get_token(self, access_token=None, refresh_token=None):
        raise NotImplementedError

    def find_tokens(self, **criteria):
        raise NotImplementedError

    def update_token(self, token, **fields):
        raise NotImplementedError

    def revoke_tokens(self, tokens, revoked_at):
        raise NotImplementedError

    def purge_expired(self, now):
        raise NotImplementedError


class SQLAlchemyStore(Store):
    def __init__(self, db):
        self.db = db

    @property
    def session(self):
        return self.db.session

    @contextmanager
    def _guard(self):
        try:
            yield
        except (OperationalError, DisconnectionError) as e:
            self.session.rollback()
            logger.error(f'Store unavailable: {e.__class__.__name__}')
            raise StoreUnavailableError() from e
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def get_client(self, client_id):
        if not client_id:
            return None
        with self._guard():
            return self.session.get(Client, client_id)

    def create_client(self, **fields):
        with self._guard():
            client = Client(**fields)
            self.session.add(client)
            self.session.commit()
            return client

    def list_clients(self, owner_id):
        with self._guard():
            return Client.query.filter_by(owner_id=owner_id).order_by(Client.created_at).all()

    def deactivate_client(self, client):
        with self._guard():
            client.active = False
            self.session.commit()
            return client

    def get_grant(self, code):
        if not code:
            return None
        with self._guard():
            return Grant.query.filter_by(code=code).first()

    def create_grant(self, **fields):
        with self._guard():
            grant = Grant(**fields)
            self.session.add(grant)
            self.session.commit()
            return grant

    def redeem_grant(self, code, **token_fields):
        with self._guard():
            result = self.session.execute(
                update(Grant)
                .where(Grant.code == code, Grant.used.is_(False))
                .values(used=True)
            )
            if result.rowcount != 1:
                self.session.rollback()
                return None
            token = Token(**token_fields)
            self.session.add(token)
            self.session.commit()
            return token

    def get_token(self, access_token=None, refresh_token=None):
        with self._guard():
            if access_token:
                return Token.query.filter_by(access_token=access_token).first()
            elif refresh_token:
                return Token.query.filter_by(refresh_token=refresh_token).first()

    def find_tokens(self, **criteria):
        with self._guard():
            return Token.query.filter_by(**criteria).order_by(Token.created_at).all()

    def update_token(self, token, **fields):
        with self._guard():
            for key, value in fields.items():
                setattr(token, key, value)
            self.session.commit()
            return token

    def revoke_tokens(self, tokens, revoked_at):
        with self._guard():
            for token in tokens:
                token.revoked = True
                token.revoked_at = revoked_at
            self.session.commit()

    def purge_expired(self, now):
        with self._guard():
            count = Grant.query.filter(Grant.expires < now).delete()
            self.session.commit()
            return count


class MemoryStore(Store):
    """Process-local store, suitable for tests and single-process demos."""

    def __init__(self):
        self._lock = Lock()
        self._clients = {}
        self._grants = {}
        self._tokens = []

    def get_client(self, client_id):
        return self._clients.get(client_id)

    def create_client(self, **fields):
        client = SimpleNamespace(**fields)
        with self._lock:
            self._clients[client.client_id] = client
        return client

    def list_clients(self, owner_id):
        clients = [c for c in self._clients.values() if c.owner_id == owner_id]
        return sorted(clients, key=lambda c: c.created_at)

    def deactivate_client(self, client):
        client.active = False
        return client

    def get_grant(self, code):
        return self._grants.get(code)

    def create_grant(self, **fields):
        grant = SimpleNamespace(**fields)
        with self._lock:
            self._grants[grant.code] = grant
        return grant

    def redeem_grant(self, code, **token_fields):
        with self._lock:
            grant = self._grants.get(code)
            if grant is None or grant.used:
                return None
            grant.used = True
            token = SimpleNamespace(**token_fields)
            self._tokens.append(token)
            return token

    def get_token(self, access_token=None, refresh_token=None):
        for token in self._tokens:
            if access_token and token.access_token == access_token:
                return token
            if not access_token and refresh_token and token.refresh_token == refresh_token:
                return token
        return None

    def find_tokens(self, **criteria):
        return [
            token for token in self._tokens
            if all(getattr(token, k) == v for k, v in criteria.items())
        ]

    def update_token(self, token, **fields):
        with self._lock:
            for key, value in fields.items():
                setattr(token, key, value)
        return token

    def revoke_tokens(self, tokens, revoked_at):
        with self._lock:
            for token in tokens:
                token.revoked = True
                token.revoked_at = revoked_at

    def purge_expired(self, now):
        with self._lock:
            expired = [code for code, grant in self._grants.items() if grant.expires < now]
            for code in expired:
                del self._grants[code]
        return len(expired)
