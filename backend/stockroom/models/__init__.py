from .auth import User, SessionToken
from .inventory import Camera, RfidTag, Item
from .media import Video, LogFile

__all__ = [
    'User', 'SessionToken',
    'Camera', 'RfidTag', 'Item',
    'Video', 'LogFile',
]
