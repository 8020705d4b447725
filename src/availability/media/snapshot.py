"""
Immutable point-in-time copies of Media, Season and MediaRequest rows.

Snapshots are what the classifier and correlator operate on. They are
detached from any session, hashable and safe to hand to worker threads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from availability.media.state import MediaRequestStatus, MediaStatus, MediaType

if TYPE_CHECKING:
    from availability.media.item import Media, Season
    from availability.media.request import MediaRequest


@dataclass(frozen=True)
class SeasonSnapshot:
    season_number: int
    status: MediaStatus = MediaStatus.UNKNOWN
    status4k: MediaStatus = MediaStatus.UNKNOWN

    def get_status(self, is4k: bool) -> MediaStatus:
        return self.status4k if is4k else self.status

    @classmethod
    def from_season(cls, season: "Season") -> "SeasonSnapshot":
        return cls(
            season_number=season.season_number,
            status=season.status,
            status4k=season.status4k,
        )


@dataclass(frozen=True)
class MediaSnapshot:
    media_id: int | None
    media_type: MediaType
    status: MediaStatus = MediaStatus.UNKNOWN
    status4k: MediaStatus = MediaStatus.UNKNOWN
    seasons: tuple[SeasonSnapshot, ...] = field(default_factory=tuple)
    last_season_change: datetime | None = None
    tmdb_id: int | None = None
    tvdb_id: int | None = None
    mb_id: str | None = None

    def __post_init__(self):
        # Seasons are keyed by number, keep them ordered so equal data compares equal
        object.__setattr__(
            self,
            "seasons",
            tuple(sorted(self.seasons, key=lambda season: season.season_number)),
        )

    def get_status(self, is4k: bool) -> MediaStatus:
        return self.status4k if is4k else self.status

    def seasons_with_status(self, status: MediaStatus, is4k: bool) -> frozenset[int]:
        """Season numbers whose variant status equals `status`."""
        return frozenset(
            season.season_number
            for season in self.seasons
            if season.get_status(is4k) == status
        )

    @property
    def regular_season_numbers(self) -> frozenset[int]:
        """Season numbers excluding specials (season 0)."""
        return frozenset(
            season.season_number for season in self.seasons if season.season_number > 0
        )

    @property
    def log_string(self) -> str:
        external_id = self.tmdb_id or self.tvdb_id or self.mb_id
        return f"{self.media_type.value} {external_id} (media {self.media_id})"

    def as_unknown(self) -> "MediaSnapshot":
        """
        The snapshot of a media that was never observed before: same identity,
        every status UNKNOWN, no seasons and no season change timestamp.
        """
        return MediaSnapshot(
            media_id=self.media_id,
            media_type=self.media_type,
            tmdb_id=self.tmdb_id,
            tvdb_id=self.tvdb_id,
            mb_id=self.mb_id,
        )

    @classmethod
    def from_media(cls, media: "Media") -> "MediaSnapshot":
        return cls(
            media_id=media.id,
            media_type=media.media_type,
            status=media.status,
            status4k=media.status4k,
            seasons=tuple(SeasonSnapshot.from_season(s) for s in media.seasons),
            last_season_change=media.last_season_change,
            tmdb_id=media.tmdb_id,
            tvdb_id=media.tvdb_id,
            mb_id=media.mb_id,
        )


@dataclass(frozen=True)
class RequestSnapshot:
    request_id: int
    media_id: int
    requested_by_id: int
    is4k: bool = False
    status: MediaRequestStatus = MediaRequestStatus.PENDING
    requested_by: str | None = None
    season_numbers: tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "season_numbers", tuple(sorted(self.season_numbers)))

    def wanted_seasons(self, media: MediaSnapshot) -> frozenset[int]:
        """
        The seasons this request is waiting for. A request without explicit
        seasons wants every regular season the media currently has.
        """
        if self.season_numbers:
            return frozenset(self.season_numbers)
        return media.regular_season_numbers

    @property
    def log_string(self) -> str:
        variant = "4K " if self.is4k else ""
        return f"{variant}request {self.request_id} by user {self.requested_by_id}"

    @classmethod
    def from_request(cls, request: "MediaRequest") -> "RequestSnapshot":
        return cls(
            request_id=request.id,
            media_id=request.media_id,
            requested_by_id=request.requested_by_id,
            is4k=request.is4k,
            status=request.status,
            requested_by=request.requested_by,
            season_numbers=tuple(s.season_number for s in request.seasons),
        )
