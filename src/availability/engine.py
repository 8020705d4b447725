"""
Availability engine.

`on_media_write` is called with the snapshot of a media before and after a
write. The diff is classified on the caller's thread, then every resulting
event is handed to the worker pool, which correlates it with requests and
either notifies their owners or approves them. Nothing downstream of
classification can fail or slow down the write that triggered it.
"""

from availability.core.classifier import classify
from availability.core.correlator import RequestCorrelator
from availability.core.events import AutoApprove, TransitionEvent
from availability.managers.event_manager import EventManager
from availability.media.snapshot import MediaSnapshot
from availability.services.dispatcher import Dispatcher
from availability.services.notifications import NotificationComposer
from availability.services.progression import RequestProgressionWriter
from availability.utils.logging import logger


class AvailabilityEngine:
    def __init__(
        self,
        correlator: RequestCorrelator,
        composer: NotificationComposer,
        dispatcher: Dispatcher,
        progression: RequestProgressionWriter,
        max_workers: int = 4,
        max_queue_size: int = 1000,
    ):
        self.correlator = correlator
        self.composer = composer
        self.dispatcher = dispatcher
        self.progression = progression
        self.em = EventManager(
            self.process_event,
            max_workers=max_workers,
            max_queue_size=max_queue_size,
        )

    def start(self):
        self.em.start()

    def stop(self, wait: bool = True):
        self.em.stop(wait=wait)

    def on_media_write(
        self, old: MediaSnapshot | None, new: MediaSnapshot
    ) -> list[TransitionEvent]:
        """
        Classify a write and queue the resulting events.

        Safe to call again for a retried write. Never raises.
        """
        try:
            events = classify(old, new)
        except Exception:
            logger.exception(f"Failed to classify write to {new.log_string}")
            return []

        for event in events:
            logger.log("AVAILABILITY", f"Detected {event.log_message}")
            self.em.add_event(event)

        return events

    def process_event(self, event: TransitionEvent):
        """Run one event through correlation and delivery, or approval."""

        if isinstance(event, AutoApprove):
            for request in self.correlator.pending_requests(event):
                self.progression.advance(request)
            return

        requests = self.correlator.correlate(event)
        if not requests:
            logger.debug(f"No requests to notify for {event.log_message}")
            return

        for payload in self.composer.compose_all(event, requests):
            self.dispatcher.send(payload)
