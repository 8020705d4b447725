"""
Availability transition classifier.

Compares the snapshot of a media before a write with the snapshot after it
and describes what meaningfully changed, once per variant:

    1. a movie (or album, standard variant only) became available
    2. one or more seasons of a series became available
    3. new episodes arrived in seasons that are still partially available
    4. a pending media became available, so its pending requests can be approved

Classification is a pure diff over in-memory snapshots: calling it twice for
the same pair yields the same events, which makes replayed writes harmless.
"""

from availability.core.events import (
    AlbumAvailable,
    AutoApprove,
    MovieAvailable,
    NewEpisodes,
    SeasonsAvailable,
    TransitionEvent,
)
from availability.media.snapshot import MediaSnapshot
from availability.media.state import MediaStatus, MediaType

VARIANTS = (False, True)

SERIES_ELIGIBLE_STATUSES = (
    MediaStatus.AVAILABLE,
    MediaStatus.PARTIALLY_AVAILABLE,
)


def classify(old: MediaSnapshot | None, new: MediaSnapshot) -> list[TransitionEvent]:
    """Return the transition events caused by the write from `old` to `new`."""

    if old is None:
        old = new.as_unknown()

    events: list[TransitionEvent] = []

    for is4k in VARIANTS:
        if new.media_type == MediaType.MOVIE:
            events += _movie_available(old, new, is4k)
        elif new.media_type == MediaType.MUSIC:
            events += _album_available(old, new, is4k)
        elif new.media_type == MediaType.TV:
            events += _seasons_available(old, new, is4k)
            events += _new_episodes(old, new, is4k)

        events += _auto_approve(old, new, is4k)

    return events


def _became_available(old: MediaSnapshot, new: MediaSnapshot, is4k: bool) -> bool:
    return (
        new.get_status(is4k) == MediaStatus.AVAILABLE
        and old.get_status(is4k) != MediaStatus.AVAILABLE
    )


def _movie_available(
    old: MediaSnapshot, new: MediaSnapshot, is4k: bool
) -> list[TransitionEvent]:
    if _became_available(old, new, is4k):
        return [MovieAvailable(media=new, is4k=is4k)]
    return []


def _album_available(
    old: MediaSnapshot, new: MediaSnapshot, is4k: bool
) -> list[TransitionEvent]:
    # Albums have no 4K pipeline
    if not is4k and _became_available(old, new, is4k):
        return [AlbumAvailable(media=new, is4k=False)]
    return []


def _seasons_available(
    old: MediaSnapshot, new: MediaSnapshot, is4k: bool
) -> list[TransitionEvent]:
    if new.get_status(is4k) not in SERIES_ELIGIBLE_STATUSES:
        return []

    new_available = new.seasons_with_status(MediaStatus.AVAILABLE, is4k)
    old_available = old.seasons_with_status(MediaStatus.AVAILABLE, is4k)
    changed = new_available - old_available

    if not changed:
        return []

    return [
        SeasonsAvailable(
            media=new,
            is4k=is4k,
            season_numbers=changed,
            available_seasons=new_available,
        )
    ]


def _new_episodes(
    old: MediaSnapshot, new: MediaSnapshot, is4k: bool
) -> list[TransitionEvent]:
    if old.last_season_change is None or new.last_season_change is None:
        return []

    if not new.last_season_change > old.last_season_change:
        return []

    partial = new.seasons_with_status(MediaStatus.PARTIALLY_AVAILABLE, is4k)
    if not partial:
        return []

    return [NewEpisodes(media=new, is4k=is4k, season_numbers=partial)]


def _auto_approve(
    old: MediaSnapshot, new: MediaSnapshot, is4k: bool
) -> list[TransitionEvent]:
    if (
        old.get_status(is4k) == MediaStatus.PENDING
        and new.get_status(is4k) == MediaStatus.AVAILABLE
    ):
        return [AutoApprove(media=new, is4k=is4k)]
    return []
