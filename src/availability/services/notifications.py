"""Builds user notifications for availability events"""

from enum import Enum

from pydantic import BaseModel, Field

from availability.core.events import EventKind, TransitionEvent
from availability.exceptions import MetadataLookupError
from availability.media.snapshot import MediaSnapshot, RequestSnapshot
from availability.media.state import MediaType
from availability.services.metadata import MediaMetadata, MetadataLookup
from availability.utils import truncate
from availability.utils.logging import logger

MESSAGE_LENGTH = 500

EVENT_LABELS = {
    EventKind.MOVIE_AVAILABLE: "Movie Request Now Available",
    EventKind.SERIES_AVAILABLE: "Series Request Now Available",
    EventKind.NEW_EPISODES: "New Episodes Now Available",
    EventKind.ALBUM_AVAILABLE: "Album Request Now Available",
}


class Notification(Enum):
    MEDIA_AVAILABLE = "media_available"


class NotificationExtra(BaseModel):
    name: str
    value: str


class NotificationPayload(BaseModel):
    notification_type: Notification = Notification.MEDIA_AVAILABLE
    category: EventKind
    event: str
    subject: str
    message: str = ""
    image: str | None = None
    notify_user: int
    notify_user_name: str | None = None
    notify_admin: bool = False
    notify_system: bool = True
    media_id: int
    request_id: int
    is4k: bool = False
    extra: list[NotificationExtra] = Field(default_factory=list)

    @property
    def log_string(self) -> str:
        return (
            f"{self.event} (media {self.media_id}, request {self.request_id}, "
            f"user {self.notify_user})"
        )


def catalog_id(media: MediaSnapshot) -> int | str | None:
    """The id the metadata providers know this media by."""
    if media.media_type == MediaType.MUSIC:
        return media.mb_id
    return media.tmdb_id


class NotificationComposer:
    def __init__(self, metadata: MetadataLookup):
        self.metadata = metadata

    def compose(
        self, event: TransitionEvent, request: RequestSnapshot
    ) -> NotificationPayload | None:
        """
        Build the notification telling the owner of `request` about `event`.

        Returns None when the media's metadata could not be fetched, so a
        failing lookup only costs this one notification.
        """

        label = self._label(event)
        metadata = self._lookup(event, request)
        if metadata is None:
            return None
        return self._build(event, request, label, metadata)

    def compose_all(
        self, event: TransitionEvent, requests: list[RequestSnapshot]
    ) -> list[NotificationPayload]:
        """
        Build the notifications for every request `event` concerns.

        Metadata is fetched once per event. A failed lookup skips only the
        request it was made for, the next request tries again.
        """

        label = self._label(event)
        metadata: MediaMetadata | None = None
        payloads: list[NotificationPayload] = []

        for request in requests:
            if metadata is None:
                metadata = self._lookup(event, request)
                if metadata is None:
                    continue
            payloads.append(self._build(event, request, label, metadata))

        return payloads

    @staticmethod
    def _label(event: TransitionEvent) -> str:
        label = EVENT_LABELS.get(event.kind)
        if label is None:
            raise ValueError(f"{event.kind.value} events are not notified")
        return label

    def _lookup(
        self, event: TransitionEvent, request: RequestSnapshot
    ) -> MediaMetadata | None:
        media = event.media
        external_id = catalog_id(media)

        try:
            if external_id is None:
                raise MetadataLookupError(f"{media.log_string} has no catalog id")
            return self.metadata.fetch(external_id, media.media_type)
        except MetadataLookupError as e:
            logger.warning(
                f"Skipping notification for {request.log_string}, {event.log_message}: {e}"
            )
        except Exception as e:
            logger.warning(
                f"Skipping notification for {request.log_string}, {event.log_message}: "
                f"metadata lookup raised {e.__class__.__name__}: {e}"
            )
        return None

    def _build(
        self,
        event: TransitionEvent,
        request: RequestSnapshot,
        label: str,
        metadata: MediaMetadata,
    ) -> NotificationPayload:
        return NotificationPayload(
            category=event.kind,
            event=f"{'4K ' if event.is4k else ''}{label}",
            subject=self._subject(event, metadata),
            message=truncate(metadata.overview, length=MESSAGE_LENGTH),
            image=metadata.artwork_url,
            notify_user=request.requested_by_id,
            notify_user_name=request.requested_by,
            media_id=event.media.media_id,
            request_id=request.request_id,
            is4k=event.is4k,
            extra=self._extra(event, request),
        )

    def _subject(self, event: TransitionEvent, metadata: MediaMetadata) -> str:
        if event.kind == EventKind.ALBUM_AVAILABLE and metadata.artist:
            return f"{metadata.title} by {metadata.artist}"
        if metadata.year:
            return f"{metadata.title} ({metadata.year})"
        return metadata.title

    def _extra(
        self, event: TransitionEvent, request: RequestSnapshot
    ) -> list[NotificationExtra]:
        wanted = request.wanted_seasons(event.media)

        if event.kind == EventKind.SERIES_AVAILABLE:
            return [
                NotificationExtra(
                    name="Requested Seasons",
                    value=", ".join(str(number) for number in sorted(wanted)),
                )
            ]

        if event.kind == EventKind.NEW_EPISODES:
            seasons = sorted(wanted & event.season_numbers)
            return [
                NotificationExtra(
                    name="Seasons",
                    value=", ".join(str(number) for number in seasons),
                )
            ]

        return []
