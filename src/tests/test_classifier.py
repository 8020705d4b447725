from datetime import datetime, timedelta

import pytest

from availability.core.classifier import classify
from availability.core.events import (
    AlbumAvailable,
    AutoApprove,
    MovieAvailable,
    NewEpisodes,
    SeasonsAvailable,
)
from availability.media import MediaSnapshot, MediaStatus, MediaType, SeasonSnapshot

A = MediaStatus.AVAILABLE
P = MediaStatus.PARTIALLY_AVAILABLE
PENDING = MediaStatus.PENDING
PROCESSING = MediaStatus.PROCESSING
UNKNOWN = MediaStatus.UNKNOWN

NOW = datetime(2024, 5, 1, 12, 0)
LATER = NOW + timedelta(hours=1)


def movie(status=UNKNOWN, status4k=UNKNOWN):
    return MediaSnapshot(
        media_id=1,
        media_type=MediaType.MOVIE,
        tmdb_id=603,
        status=status,
        status4k=status4k,
    )


def album(status=UNKNOWN, status4k=UNKNOWN):
    return MediaSnapshot(
        media_id=3,
        media_type=MediaType.MUSIC,
        mb_id="f5093c06-23e3-404f-aeaa-40f72885ee3a",
        status=status,
        status4k=status4k,
    )


def series(seasons, status=P, status4k=UNKNOWN, last_season_change=NOW, seasons4k=None):
    seasons4k = seasons4k or {}
    return MediaSnapshot(
        media_id=2,
        media_type=MediaType.TV,
        tmdb_id=1399,
        status=status,
        status4k=status4k,
        seasons=tuple(
            SeasonSnapshot(
                season_number=number,
                status=season_status,
                status4k=seasons4k.get(number, UNKNOWN),
            )
            for number, season_status in seasons.items()
        ),
        last_season_change=last_season_change,
    )


class TestMovieAvailability:
    def test_processing_to_available_fires_once_for_standard_variant(self):
        old, new = movie(PROCESSING), movie(A)
        assert classify(old, new) == [MovieAvailable(media=new, is4k=False)]

    def test_4k_variant_is_independent(self):
        old, new = movie(A, PROCESSING), movie(A, A)
        assert classify(old, new) == [MovieAvailable(media=new, is4k=True)]

    def test_both_variants_on_the_same_write(self):
        old, new = movie(PROCESSING, PROCESSING), movie(A, A)
        assert classify(old, new) == [
            MovieAvailable(media=new, is4k=False),
            MovieAvailable(media=new, is4k=True),
        ]

    def test_already_available_does_not_fire(self):
        assert classify(movie(A), movie(A)) == []

    def test_leaving_availability_does_not_fire(self):
        assert classify(movie(A), movie(MediaStatus.DELETED)) == []

    def test_progress_short_of_available_does_not_fire(self):
        assert classify(movie(PENDING), movie(PROCESSING)) == []

    def test_first_observation_already_available(self):
        new = movie(A)
        assert classify(None, new) == [MovieAvailable(media=new, is4k=False)]

    def test_first_observation_not_available(self):
        assert classify(None, movie(PENDING)) == []

    def test_pending_to_available_also_auto_approves(self):
        old, new = movie(PENDING), movie(A)
        assert classify(old, new) == [
            MovieAvailable(media=new, is4k=False),
            AutoApprove(media=new, is4k=False),
        ]

    def test_movie_never_produces_series_events(self):
        events = classify(movie(PROCESSING), movie(A))
        assert not any(isinstance(e, (SeasonsAvailable, NewEpisodes)) for e in events)


class TestAlbumAvailability:
    def test_processing_to_available(self):
        old, new = album(PROCESSING), album(A)
        assert classify(old, new) == [AlbumAvailable(media=new, is4k=False)]

    def test_album_has_no_4k_notification(self):
        assert classify(album(A, PROCESSING), album(A, A)) == []

    def test_pending_to_available_auto_approves(self):
        old, new = album(PENDING), album(A)
        assert classify(old, new) == [
            AlbumAvailable(media=new, is4k=False),
            AutoApprove(media=new, is4k=False),
        ]


class TestSeriesAvailability:
    def test_newly_available_season_is_the_difference(self):
        old = series({1: A, 2: PENDING})
        new = series({1: A, 2: A}, status=A)

        assert classify(old, new) == [
            SeasonsAvailable(
                media=new,
                is4k=False,
                season_numbers=frozenset({2}),
                available_seasons=frozenset({1, 2}),
            )
        ]

    def test_seasons_are_matched_by_number_not_position(self):
        old = MediaSnapshot(
            media_id=2,
            media_type=MediaType.TV,
            status=P,
            seasons=(
                SeasonSnapshot(season_number=2, status=A),
                SeasonSnapshot(season_number=1, status=PROCESSING),
            ),
            last_season_change=NOW,
        )
        new = series({1: A, 2: A}, status=A)

        [event] = classify(old, new)
        assert event.season_numbers == frozenset({1})

    def test_season_added_already_available(self):
        old = series({1: A})
        new = series({1: A, 2: A}, status=A)

        [event] = classify(old, new)
        assert event.season_numbers == frozenset({2})

    def test_multiple_seasons_on_one_write(self):
        old = series({1: PENDING, 2: PENDING, 3: PENDING}, status=PROCESSING)
        new = series({1: A, 2: A, 3: PROCESSING}, status=P)

        [event] = classify(old, new)
        assert event.season_numbers == frozenset({1, 2})
        assert event.available_seasons == frozenset({1, 2})

    def test_no_change_in_available_seasons(self):
        assert classify(series({1: A, 2: P}), series({1: A, 2: P})) == []

    def test_series_must_be_at_least_partially_available(self):
        old = series({1: PENDING}, status=PROCESSING)
        new = series({1: A}, status=PROCESSING)
        assert classify(old, new) == []

    def test_4k_seasons_are_tracked_separately(self):
        old = series({1: A}, status=A, status4k=PROCESSING, seasons4k={1: PROCESSING})
        new = series({1: A}, status=A, status4k=A, seasons4k={1: A})

        assert classify(old, new) == [
            SeasonsAvailable(
                media=new,
                is4k=True,
                season_numbers=frozenset({1}),
                available_seasons=frozenset({1}),
            )
        ]

    def test_first_observation_reports_every_available_season(self):
        new = series({1: A, 2: A, 3: PENDING}, status=P)

        [event] = classify(None, new)
        assert event.season_numbers == frozenset({1, 2})

    def test_pending_series_becoming_available_auto_approves(self):
        old = series({1: PENDING}, status=PENDING)
        new = series({1: A}, status=A)

        events = classify(old, new)
        assert [type(e) for e in events] == [SeasonsAvailable, AutoApprove]


class TestNewEpisodes:
    def test_season_change_with_partial_season(self):
        old = series({1: A, 3: P}, last_season_change=NOW)
        new = series({1: A, 3: P}, last_season_change=LATER)

        assert classify(old, new) == [
            NewEpisodes(media=new, is4k=False, season_numbers=frozenset({3}))
        ]

    def test_requires_a_strictly_later_season_change(self):
        old = series({3: P}, last_season_change=NOW)
        new = series({3: P}, last_season_change=NOW)
        assert classify(old, new) == []

    @pytest.mark.parametrize(
        "old_change, new_change",
        [(None, LATER), (NOW, None), (None, None)],
    )
    def test_missing_timestamps_never_fire(self, old_change, new_change):
        old = series({3: P}, last_season_change=old_change)
        new = series({3: P}, last_season_change=new_change)
        assert classify(old, new) == []

    def test_no_partial_seasons(self):
        old = series({1: A}, status=A, last_season_change=NOW)
        new = series({1: A}, status=A, last_season_change=LATER)
        assert classify(old, new) == []

    def test_fires_alongside_season_availability(self):
        old = series({1: P, 2: P}, last_season_change=NOW)
        new = series({1: A, 2: P}, last_season_change=LATER)

        assert classify(old, new) == [
            SeasonsAvailable(
                media=new,
                is4k=False,
                season_numbers=frozenset({1}),
                available_seasons=frozenset({1}),
            ),
            NewEpisodes(media=new, is4k=False, season_numbers=frozenset({2})),
        ]

    def test_4k_partial_seasons(self):
        old = series({1: A}, status=A, status4k=P, seasons4k={1: P}, last_season_change=NOW)
        new = series({1: A}, status=A, status4k=P, seasons4k={1: P}, last_season_change=LATER)

        assert classify(old, new) == [
            NewEpisodes(media=new, is4k=True, season_numbers=frozenset({1}))
        ]


class TestAutoApprove:
    def test_requires_pending_before(self):
        events = classify(movie(PROCESSING), movie(A))
        assert not any(isinstance(e, AutoApprove) for e in events)

    def test_4k_variant(self):
        old, new = movie(A, PENDING), movie(A, A)
        assert classify(old, new) == [
            MovieAvailable(media=new, is4k=True),
            AutoApprove(media=new, is4k=True),
        ]

    def test_pending_to_partial_does_not_approve(self):
        old = series({1: PENDING, 2: PENDING}, status=PENDING)
        new = series({1: A, 2: PENDING}, status=P)
        assert [type(e) for e in classify(old, new)] == [SeasonsAvailable]


@pytest.mark.parametrize(
    "old, new",
    [
        (movie(PENDING, PROCESSING), movie(A, A)),
        (series({1: P, 2: PENDING}, last_season_change=NOW), series({1: A, 2: P}, last_season_change=LATER)),
        (None, album(A)),
    ],
)
def test_classification_is_deterministic(old, new):
    assert classify(old, new) == classify(old, new)
