"""Maps transition events to the requests they concern"""

from collections.abc import Sequence
from typing import Protocol

from availability.core.events import (
    AlbumAvailable,
    AutoApprove,
    MovieAvailable,
    NewEpisodes,
    SeasonsAvailable,
    TransitionEvent,
)
from availability.media.snapshot import RequestSnapshot
from availability.media.state import MediaRequestStatus
from availability.utils.logging import logger


class RequestQuery(Protocol):
    """Read access to requests, implemented by the persistence layer."""

    def get_related_requests(
        self, media_id: int, is4k: bool
    ) -> Sequence[RequestSnapshot]:
        """All non-declined requests for the media variant, oldest first."""
        ...

    def get_pending_requests(
        self, media_id: int, is4k: bool
    ) -> Sequence[RequestSnapshot]:
        """All pending requests for the media variant, oldest first."""
        ...


class RequestCorrelator:
    """
    Resolves which requests a transition event concerns.

    Requests are always considered in creation order, which decides who wins
    when two requests overlap on the same seasons.
    """

    def __init__(self, query: RequestQuery):
        self.query = query

    def correlate(self, event: TransitionEvent) -> list[RequestSnapshot]:
        """Requests that should be notified about `event`."""

        if isinstance(event, AutoApprove):
            # Auto-approval never notifies by itself
            return []

        candidates = self._candidates(event)
        if not candidates:
            return []

        if isinstance(event, (MovieAvailable, AlbumAvailable)):
            return candidates
        if isinstance(event, SeasonsAvailable):
            return self._completed_by(event, candidates)
        if isinstance(event, NewEpisodes):
            return self._touched_by(event, candidates)

        raise TypeError(f"Unsupported transition event {type(event).__name__}")

    def pending_requests(self, event: AutoApprove) -> list[RequestSnapshot]:
        """Requests the progression writer should approve for `event`."""

        if event.media.media_id is None:
            return []

        requests = self.query.get_pending_requests(event.media.media_id, event.is4k)
        return [
            request
            for request in _in_creation_order(requests)
            if request.is4k == event.is4k
            and request.status == MediaRequestStatus.PENDING
        ]

    def _candidates(self, event: TransitionEvent) -> list[RequestSnapshot]:
        if event.media.media_id is None:
            return []

        requests = self.query.get_related_requests(event.media.media_id, event.is4k)
        return [
            request
            for request in _in_creation_order(requests)
            if request.is4k == event.is4k
            and request.status != MediaRequestStatus.DECLINED
        ]

    def _completed_by(
        self, event: SeasonsAvailable, candidates: list[RequestSnapshot]
    ) -> list[RequestSnapshot]:
        """
        Select the requests whose seasons are all available now and that this
        write helped complete. Once a request is selected its seasons are
        claimed: a later request overlapping a claimed season is not notified
        for that same changed season.
        """

        claimed: set[int] = set()
        selected: list[RequestSnapshot] = []

        for season_number in sorted(event.season_numbers):
            if season_number in claimed:
                continue

            for request in candidates:
                wanted = request.wanted_seasons(event.media)
                if not wanted:
                    continue
                if season_number in wanted and wanted <= event.available_seasons:
                    claimed |= wanted
                    selected.append(request)
                    break

        if selected:
            logger.debug(
                f"{event.log_message} completed {len(selected)} request(s), "
                f"claimed seasons {sorted(claimed)}"
            )

        return selected

    def _touched_by(
        self, event: NewEpisodes, candidates: list[RequestSnapshot]
    ) -> list[RequestSnapshot]:
        return [
            request
            for request in candidates
            if request.wanted_seasons(event.media) & event.season_numbers
        ]


def _in_creation_order(requests: Sequence[RequestSnapshot]) -> list[RequestSnapshot]:
    return sorted(requests, key=lambda request: request.request_id)
