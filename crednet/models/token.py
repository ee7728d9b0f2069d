from crednet.models.ext import db


class Token(db.Model):
    __tablename__ = 'token'

    __table_args__ = {
        'extend_existing': True,
    }

    id = db.Column(db.Integer, primary_key=True)

    client_id = db.Column(
        db.String(64),
        db.ForeignKey('client.client_id'),
        nullable=False,
    )

    client = db.relationship('Client')

    user_id = db.Column(
        db.Integer, db.ForeignKey('user.id')
    )

    user = db.relationship('User')

    grant_code = db.Column(db.String(256), index=True)

    token_type = db.Column(db.String(40), nullable=False, default='Bearer')

    access_token = db.Column(db.String(256), unique=True, nullable=False)

    refresh_token = db.Column(db.String(256), unique=True, nullable=False)

    expires = db.Column(db.DateTime, nullable=False)

    revoked = db.Column(db.Boolean, nullable=False, default=False)

    revoked_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, nullable=False)

    _scopes = db.Column(db.Text)

    @property
    def scopes(self):
        if self._scopes:
            return self._scopes.split()
        return []

    @scopes.setter
    def scopes(self, value):
        self._scopes = ' '.join(value)
