from crednet.models.ext import db


class User(db.Model):
    __tablename__ = 'user'

    __table_args__ = {
        'extend_existing': True,
    }

    id = db.Column(db.Integer, primary_key=True)

    username = db.Column(db.String(64), unique=True, nullable=False)

    display_name = db.Column(db.String(128))

    email = db.Column(db.String(256))

    email_verified = db.Column(db.Boolean, nullable=False, default=False)

    symbolic_name = db.Column(db.String(128))

    photo_url = db.Column(db.String(512))

    token_balance = db.Column(db.Integer, nullable=False, default=0)

    reputation = db.Column(db.String(32), nullable=False, default='chrome')

    breadcrumb_score = db.Column(db.Integer, nullable=False, default=0)
