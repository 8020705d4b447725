"""Process-wide wiring of the availability engine and its collaborators"""

import os

from kink import di

from availability.core.correlator import RequestCorrelator
from availability.db.db import create_tables, db
from availability.db.db_functions import RequestStore
from availability.engine import AvailabilityEngine
from availability.media.state import MediaType
from availability.services.dispatcher import (
    AppriseNotificationSink,
    Dispatcher,
    NotificationSink,
)
from availability.services.metadata import (
    MetadataLookup,
    MetadataService,
    MusicBrainzMetadataLookup,
    TmdbMetadataLookup,
)
from availability.services.notifications import NotificationComposer
from availability.services.progression import RequestProgressionWriter
from availability.settings.manager import settings_manager
from availability.subscriber import MediaSubscriber
from availability.utils import data_dir_path
from availability.utils.logging import logger


def register_collaborators():
    """Register the default external collaborators unless the host already did."""

    settings = settings_manager.settings

    if MetadataLookup not in di:
        tmdb = TmdbMetadataLookup(
            api_key=settings.metadata.tmdb_api_key,
            language=settings.metadata.language,
            timeout=settings.metadata.timeout,
        )
        di[MetadataLookup] = MetadataService(
            {
                MediaType.MOVIE: tmdb,
                MediaType.TV: tmdb,
                MediaType.MUSIC: MusicBrainzMetadataLookup(
                    language=settings.metadata.language,
                    timeout=settings.metadata.timeout,
                ),
            }
        )

    if NotificationSink not in di:
        di[NotificationSink] = AppriseNotificationSink(settings.notifications)

    if RequestStore not in di:
        di[RequestStore] = RequestStore(db.Session)


def bootstrap() -> AvailabilityEngine:
    """Build the engine, start its workers and subscribe it to media writes."""

    if AvailabilityEngine in di:
        return di[AvailabilityEngine]

    os.makedirs(data_dir_path, exist_ok=True)
    create_tables()
    register_collaborators()

    settings = settings_manager.settings
    store = di[RequestStore]

    engine = AvailabilityEngine(
        correlator=RequestCorrelator(store),
        composer=NotificationComposer(di[MetadataLookup]),
        dispatcher=Dispatcher(di[NotificationSink]),
        progression=RequestProgressionWriter(store),
        max_workers=settings.workers.max_workers,
        max_queue_size=settings.workers.max_queue_size,
    )
    engine.start()

    subscriber = MediaSubscriber(engine)
    subscriber.listen(db.Session)

    di[AvailabilityEngine] = engine
    di[MediaSubscriber] = subscriber

    logger.success("Availability engine started")
    return engine


def shutdown():
    if AvailabilityEngine not in di:
        return

    di[MediaSubscriber].remove()
    di[AvailabilityEngine].stop()
    logger.info("Availability engine stopped")
