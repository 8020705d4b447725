"""Metadata lookups used to decorate notification text"""

import re
from typing import Protocol

import requests
from pydantic import BaseModel
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from availability.exceptions import MetadataLookupError
from availability.media.state import MediaType
from availability.utils import get_version
from availability.utils.logging import logger

TMDB_IMAGE_URL = "https://image.tmdb.org/t/p/w600_and_h900_bestv2"

MBID_PATTERN = re.compile(
    r"^[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}$"
)
HTML_TAG_PATTERN = re.compile(r"<[^>]+>")

_retry_strategy = Retry(
    total=3,
    backoff_factor=0.3,
    status_forcelist=[429, 500, 502, 503, 504],
    allowed_methods=["GET"],
)


def _build_session() -> requests.Session:
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=_retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({"Accept": "application/json"})
    return session


class MediaMetadata(BaseModel):
    title: str
    year: int | None = None
    overview: str = ""
    artwork_url: str | None = None
    artist: str | None = None


class MetadataLookup(Protocol):
    def fetch(self, catalog_id: int | str, kind: MediaType) -> MediaMetadata:
        """Fetch title, synopsis and artwork, raising MetadataLookupError on failure."""
        ...


def _year(date: str | None) -> int | None:
    if date and len(date) >= 4 and date[:4].isdigit():
        return int(date[:4])
    return None


class TmdbMetadataLookup:
    """Movie and series metadata from TMDB"""

    BASE_URL = "https://api.themoviedb.org/3"

    def __init__(
        self,
        api_key: str,
        language: str = "en",
        timeout: int = 10,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.language = language
        self.timeout = timeout
        self.session = session or _build_session()

    def fetch(self, catalog_id: int | str, kind: MediaType) -> MediaMetadata:
        if kind == MediaType.MOVIE:
            path = "movie"
        elif kind == MediaType.TV:
            path = "tv"
        else:
            raise MetadataLookupError(f"TMDB has no metadata for {kind.value} media")

        if not self.api_key:
            raise MetadataLookupError("TMDB API key is not configured")

        try:
            response = self.session.get(
                f"{self.BASE_URL}/{path}/{catalog_id}",
                params={"api_key": self.api_key, "language": self.language},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise MetadataLookupError(
                f"TMDB lookup for {path} {catalog_id} failed: {e}"
            ) from e

        if not isinstance(data, dict):
            raise MetadataLookupError(
                f"TMDB returned an unexpected body for {path} {catalog_id}"
            )

        poster_path = data.get("poster_path")

        return MediaMetadata(
            title=data.get("title") or data.get("name") or "Unknown",
            year=_year(data.get("release_date") or data.get("first_air_date")),
            overview=data.get("overview") or "",
            artwork_url=f"{TMDB_IMAGE_URL}{poster_path}" if poster_path else None,
        )


class MusicBrainzMetadataLookup:
    """Album metadata from MusicBrainz, artwork from the Cover Art Archive"""

    BASE_URL = "https://musicbrainz.org/ws/2"
    WIKIPEDIA_EXTRACT_URL = "https://musicbrainz.org/artist/{mbid}/wikipedia-extract"
    COVER_ART_URL = "https://coverartarchive.org/release-group/{mbid}/front-250"

    def __init__(
        self,
        language: str = "en",
        timeout: int = 10,
        session: requests.Session | None = None,
    ):
        self.language = language
        self.timeout = timeout
        self.session = session or _build_session()
        # MusicBrainz rejects anonymous clients
        self.session.headers.update(
            {"User-Agent": f"availability-engine/{get_version()}"}
        )

    def fetch(self, catalog_id: int | str, kind: MediaType) -> MediaMetadata:
        if kind != MediaType.MUSIC:
            raise MetadataLookupError(
                f"MusicBrainz has no metadata for {kind.value} media"
            )

        try:
            response = self.session.get(
                f"{self.BASE_URL}/release-group/{catalog_id}",
                params={"inc": "artist-credits", "fmt": "json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise MetadataLookupError(
                f"MusicBrainz lookup for release group {catalog_id} failed: {e}"
            ) from e

        if not isinstance(data, dict):
            raise MetadataLookupError(
                f"MusicBrainz returned an unexpected body for release group {catalog_id}"
            )

        credits = data.get("artist-credit") or []
        artist = "".join(
            f"{credit.get('name', '')}{credit.get('joinphrase', '')}"
            for credit in credits
        )
        artist_id = credits[0].get("artist", {}).get("id") if credits else None

        return MediaMetadata(
            title=data.get("title") or "Unknown",
            year=_year(data.get("first-release-date")),
            overview=self.artist_extract(artist_id) if artist_id else "",
            artist=artist or None,
            artwork_url=self.COVER_ART_URL.format(mbid=catalog_id),
        )

    def artist_extract(self, artist_id: str) -> str:
        """Plain-text Wikipedia extract for an artist, empty when there is none."""

        if not MBID_PATTERN.match(artist_id):
            logger.debug(f"Not fetching Wikipedia extract for invalid artist id {artist_id}")
            return ""

        try:
            response = self.session.get(
                self.WIKIPEDIA_EXTRACT_URL.format(mbid=artist_id),
                headers={"Accept-Language": self.language},
                timeout=self.timeout,
            )
            response.raise_for_status()
            extract = response.json().get("wikipediaExtract") or {}
        except (requests.RequestException, ValueError, AttributeError) as e:
            logger.debug(f"No Wikipedia extract for artist {artist_id}: {e}")
            return ""

        content = extract.get("content") or ""
        return HTML_TAG_PATTERN.sub("", content).strip()


class MetadataService:
    """Routes a lookup to the provider registered for the media kind"""

    def __init__(self, lookups: dict[MediaType, MetadataLookup]):
        self.lookups = lookups

    def fetch(self, catalog_id: int | str, kind: MediaType) -> MediaMetadata:
        lookup = self.lookups.get(kind)
        if lookup is None:
            raise MetadataLookupError(f"No metadata lookup for {kind.value} media")

        metadata = lookup.fetch(catalog_id, kind)
        logger.trace(f"Fetched metadata for {kind.value} {catalog_id}: {metadata.title}")
        return metadata
