"""
Availability and request states.

`MediaStatus` is tracked twice per media and per season, once for the
standard variant (`status`) and once for the 4K variant (`status4k`). The two
are independent state machines for the same title:

    Pending → Processing → PartiallyAvailable → Available

Blacklisted and Deleted may be entered from anywhere and are never left
automatically.
"""
from enum import Enum


class MediaType(Enum):
    MOVIE = "movie"
    TV = "tv"
    MUSIC = "music"


class MediaStatus(Enum):
    UNKNOWN = 1
    PENDING = 2
    PROCESSING = 3
    PARTIALLY_AVAILABLE = 4
    AVAILABLE = 5
    BLACKLISTED = 6
    DELETED = 7


class MediaRequestStatus(Enum):
    PENDING = 1
    APPROVED = 2
    DECLINED = 3
    FAILED = 4
    COMPLETED = 5
    DELETION_PENDING = 6
    DELETION_APPROVED = 7
    DELETION_DECLINED = 8
