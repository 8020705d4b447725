from .item import Media, Season
from .request import MediaRequest, SeasonRequest
from .snapshot import MediaSnapshot, RequestSnapshot, SeasonSnapshot
from .state import MediaRequestStatus, MediaStatus, MediaType

__all__ = [
    "Media",
    "MediaRequest",
    "MediaRequestStatus",
    "MediaSnapshot",
    "MediaStatus",
    "MediaType",
    "RequestSnapshot",
    "Season",
    "SeasonRequest",
    "SeasonSnapshot",
]
