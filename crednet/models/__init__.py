from crednet.models.client import Client
from crednet.models.grant import Grant
from crednet.models.token import Token
from crednet.models.user import User


__all__ = [
    'Client',
    'Grant',
    'Token',
    'User',
]
