# Import all models to make them available
from .enums import MediaType, NotificationType, WatchlistPriority
from .library import CurrentlyWatching, PersonFavorite, WatchedItem, WatchlistItem
from .rating import PersonRating, Rating
from .social import BROADCAST_AUDIENCE, Follow, Notification, NotificationReceipt
from .user import User

__all__ = [
    "User",
    "Rating",
    "PersonRating",
    "WatchlistItem",
    "WatchedItem",
    "PersonFavorite",
    "CurrentlyWatching",
    "Follow",
    "Notification",
    "NotificationReceipt",
    "BROADCAST_AUDIENCE",
    "MediaType",
    "NotificationType",
    "WatchlistPriority",
]
