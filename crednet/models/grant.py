from crednet.models.ext import db


class Grant(db.Model):
    __tablename__ = 'grant'

    __table_args__ = {
        'extend_existing': True,
    }

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'))

    user = db.relationship('User')

    client_id = db.Column(
        db.String(64), db.ForeignKey('client.client_id'),
        nullable=False,
    )

    client = db.relationship('Client')

    code = db.Column(db.String(256), unique=True, index=True, nullable=False)

    redirect_uri = db.Column(db.String(512), nullable=False)

    expires = db.Column(db.DateTime, nullable=False)

    used = db.Column(db.Boolean, nullable=False, default=False)

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
