"""End-to-end tests of the classification → notification pipeline with fake collaborators"""

from unittest.mock import Mock, patch

import pytest

from availability.core.correlator import RequestCorrelator
from availability.core.events import SeasonsAvailable
from availability.engine import AvailabilityEngine
from availability.exceptions import MetadataLookupError, NotificationDeliveryError
from availability.media import (
    MediaRequestStatus,
    MediaSnapshot,
    MediaStatus,
    MediaType,
    RequestSnapshot,
    SeasonSnapshot,
)
from availability.services.dispatcher import Dispatcher
from availability.services.metadata import MediaMetadata
from availability.services.notifications import NotificationComposer
from availability.services.progression import RequestProgressionWriter

A = MediaStatus.AVAILABLE


class FakeStore:
    def __init__(self, requests):
        self.requests = {r.request_id: r for r in requests}
        self.approved = []

    def get_related_requests(self, media_id, is4k):
        return [
            r
            for r in self.requests.values()
            if r.media_id == media_id and r.is4k == is4k and r.status != MediaRequestStatus.DECLINED
        ]

    def get_pending_requests(self, media_id, is4k):
        return [
            r
            for r in self.get_related_requests(media_id, is4k)
            if r.status == MediaRequestStatus.PENDING
        ]

    def approve_if_pending(self, request_id):
        self.approved.append(request_id)
        return True


class FakeMetadata:
    """Fails for one catalog id, answers for every other."""

    def __init__(self, failing_id=None):
        self.failing_id = failing_id

    def fetch(self, catalog_id, kind):
        if catalog_id == self.failing_id:
            raise MetadataLookupError(f"lookup for {catalog_id} timed out")
        return MediaMetadata(title=f"Title {catalog_id}", year=2020)


def build_engine(store, metadata=None, sink=None):
    sink = sink or Mock()
    engine = AvailabilityEngine(
        correlator=RequestCorrelator(store),
        composer=NotificationComposer(metadata or FakeMetadata()),
        dispatcher=Dispatcher(sink),
        progression=RequestProgressionWriter(store),
        max_workers=2,
    )
    return engine, sink


def movie(status, status4k=MediaStatus.UNKNOWN):
    return MediaSnapshot(
        media_id=1, media_type=MediaType.MOVIE, tmdb_id=603, status=status, status4k=status4k
    )


def request(request_id, status=MediaRequestStatus.PENDING, is4k=False):
    return RequestSnapshot(
        request_id=request_id, media_id=1, requested_by_id=request_id, status=status, is4k=is4k
    )


@pytest.fixture
def store():
    return FakeStore([request(1), request(2, status=MediaRequestStatus.APPROVED), request(3, is4k=True)])


def test_movie_available_notifies_and_approves(store):
    engine, sink = build_engine(store)
    engine.start()

    events = engine.on_media_write(movie(MediaStatus.PENDING), movie(A))

    assert engine.em.wait_until_idle(timeout=5)
    engine.stop()

    assert len(events) == 2
    assert sorted(call.args[0].request_id for call in sink.send.call_args_list) == [1, 2]
    assert store.approved == [1]


def test_replayed_write_is_classified_identically(store):
    engine, _ = build_engine(store)

    first = engine.on_media_write(movie(MediaStatus.PROCESSING), movie(A))
    second = engine.on_media_write(movie(MediaStatus.PROCESSING), movie(A))

    assert first == second


def test_write_path_never_waits_for_delivery(store):
    engine, sink = build_engine(store)

    # Workers not started: the write returns immediately with its events queued
    events = engine.on_media_write(movie(MediaStatus.PROCESSING), movie(A))

    assert len(events) == 1
    assert engine.em.queue_size == 1
    sink.send.assert_not_called()


def test_classification_bug_does_not_fail_the_write(store):
    engine, _ = build_engine(store)

    with patch("availability.engine.classify", side_effect=RuntimeError("bug")):
        assert engine.on_media_write(None, movie(A)) == []


def test_metadata_failure_only_skips_its_own_event():
    series = MediaSnapshot(
        media_id=2,
        media_type=MediaType.TV,
        tmdb_id=1399,
        status=MediaStatus.PARTIALLY_AVAILABLE,
        seasons=(SeasonSnapshot(season_number=1, status=A),),
    )
    store = FakeStore(
        [
            request(1),
            RequestSnapshot(
                request_id=2,
                media_id=2,
                requested_by_id=2,
                status=MediaRequestStatus.APPROVED,
                season_numbers=(1,),
            ),
        ]
    )
    engine, sink = build_engine(store, metadata=FakeMetadata(failing_id=603))
    engine.start()

    engine.on_media_write(movie(MediaStatus.PROCESSING), movie(A))
    engine.em.add_event(
        SeasonsAvailable(
            media=series,
            is4k=False,
            season_numbers=frozenset({1}),
            available_seasons=frozenset({1}),
        )
    )

    assert engine.em.wait_until_idle(timeout=5)
    engine.stop()

    # Movie lookup failed, the series notification still went out
    assert [call.args[0].media_id for call in sink.send.call_args_list] == [2]


def test_sibling_events_of_one_write_are_independent(store):
    class FlakyMetadata:
        def fetch(self, catalog_id, kind):
            raise MetadataLookupError("down")

    engine, sink = build_engine(store, metadata=FlakyMetadata())
    engine.start()

    engine.on_media_write(movie(MediaStatus.PENDING), movie(A))

    assert engine.em.wait_until_idle(timeout=5)
    engine.stop()

    # No notification could be composed, the auto-approval still happened
    sink.send.assert_not_called()
    assert store.approved == [1]


def test_delivery_failure_does_not_roll_back_approval(store):
    sink = Mock()
    sink.send.side_effect = NotificationDeliveryError("smtp down")
    engine, _ = build_engine(store, sink=sink)
    engine.start()

    engine.on_media_write(movie(MediaStatus.PENDING), movie(A))

    assert engine.em.wait_until_idle(timeout=5)
    engine.stop()

    assert sink.send.call_count == 2
    assert store.approved == [1]


def test_4k_write_only_touches_4k_requests(store):
    engine, sink = build_engine(store)
    engine.start()

    engine.on_media_write(movie(A, MediaStatus.PENDING), movie(A, A))

    assert engine.em.wait_until_idle(timeout=5)
    engine.stop()

    assert [call.args[0].request_id for call in sink.send.call_args_list] == [3]
    assert store.approved == [3]


def test_transient_lookup_error_skips_only_one_payload():
    class TimingOutOnce:
        def __init__(self):
            self.calls = 0

        def fetch(self, catalog_id, kind):
            self.calls += 1
            if self.calls == 1:
                raise TimeoutError("read timed out")
            return MediaMetadata(title="The Matrix", year=1999)

    store = FakeStore(
        [
            request(1, status=MediaRequestStatus.APPROVED),
            request(2, status=MediaRequestStatus.APPROVED),
        ]
    )
    engine, sink = build_engine(store, metadata=TimingOutOnce())
    engine.start()

    engine.on_media_write(movie(MediaStatus.PROCESSING), movie(A))

    assert engine.em.wait_until_idle(timeout=5)
    engine.stop()

    assert [call.args[0].request_id for call in sink.send.call_args_list] == [2]
