from flask import session
from crednet.models import User
from crednet.models.ext import db


def current_user():
    if user_id := session.get('id'):
        return db.session.get(User, user_id)
    return None


def current_user_id():
    if user := current_user():
        return user.id
    return None
