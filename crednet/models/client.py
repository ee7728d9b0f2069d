from crednet.models.ext import db


class Client(db.Model):
    __tablename__ = 'client'

    __table_args__ = {
        'extend_existing': True,
    }

    client_id = db.Column(db.String(64), primary_key=True)

    client_secret = db.Column(db.String(128), nullable=False)

    name = db.Column(db.String(128), nullable=False)

    logo_url = db.Column(db.String(512), nullable=False, default='')

    owner_id = db.Column(db.ForeignKey('user.id'), nullable=False)

    owner = db.relationship('User')

    active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False)

    _redirect_uris = db.Column(db.Text)

    _allowed_scopes = db.Column(db.Text)

    @property
    def redirect_uris(self):
        if self._redirect_uris:
            return self._redirect_uris.split()
        return []

    @redirect_uris.setter
    def redirect_uris(self, value):
        self._redirect_uris = ' '.join(value)

    @property
    def allowed_scopes(self):
        if self._allowed_scopes:
            return self._allowed_scopes.split()
        return []

    @allowed_scopes.setter
    def allowed_scopes(self, value):
        self._allowed_scopes = ' '.join(value)
