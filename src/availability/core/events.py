"""Transition events produced by the classifier"""

from dataclasses import dataclass, field
from enum import Enum

from availability.media.snapshot import MediaSnapshot


class EventKind(Enum):
    MOVIE_AVAILABLE = "movie"
    SERIES_AVAILABLE = "series"
    NEW_EPISODES = "new_episodes"
    ALBUM_AVAILABLE = "album"
    AUTO_APPROVE = "auto_approve"


@dataclass(frozen=True)
class TransitionEvent:
    media: MediaSnapshot
    is4k: bool

    kind = EventKind.MOVIE_AVAILABLE

    @property
    def log_message(self) -> str:
        variant = "4K " if self.is4k else ""
        return f"{variant}{self.kind.value} event for {self.media.log_string}"


@dataclass(frozen=True)
class MovieAvailable(TransitionEvent):
    kind = EventKind.MOVIE_AVAILABLE


@dataclass(frozen=True)
class AlbumAvailable(TransitionEvent):
    kind = EventKind.ALBUM_AVAILABLE


@dataclass(frozen=True)
class SeasonsAvailable(TransitionEvent):
    """
    `season_numbers` are the seasons that became available on this write,
    `available_seasons` every season available after it.
    """

    season_numbers: frozenset[int] = field(default_factory=frozenset)
    available_seasons: frozenset[int] = field(default_factory=frozenset)

    kind = EventKind.SERIES_AVAILABLE


@dataclass(frozen=True)
class NewEpisodes(TransitionEvent):
    """`season_numbers` are the partially available seasons that got new content."""

    season_numbers: frozenset[int] = field(default_factory=frozenset)

    kind = EventKind.NEW_EPISODES


@dataclass(frozen=True)
class AutoApprove(TransitionEvent):
    kind = EventKind.AUTO_APPROVE
