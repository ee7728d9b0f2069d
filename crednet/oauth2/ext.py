from crednet.models import User
from crednet.models.ext import db
from crednet.oauth2.provider import Provider
from crednet.oauth2.store import SQLAlchemyStore
from crednet.routes.utils import current_user_id


oauth2 = Provider(store=SQLAlchemyStore(db))


@oauth2.usergetter
def load_user(user_id):
    return db.session.get(User, user_id)


oauth2.currentusergetter(current_user_id)
