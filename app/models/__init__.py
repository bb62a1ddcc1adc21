"""
Models package

Every table lives in its own module:
- user.py, profile.py
- watchlog.py
- friendship.py
- watchlist.py, lists.py

Usage:
    from models import WatchLog, Friendship
"""

from .user import User
from .profile import Profile
from .watchlog import WatchLog
from .friendship import Friendship, make_pair_key
from .watchlist import WatchlistItem
from .lists import List, ListItem

__all__ = [
    "User",
    "Profile",
    "WatchLog",
    "Friendship",
    "make_pair_key",
    "WatchlistItem",
    "List",
    "ListItem",
]
