"""Hands composed notifications to the delivery transport"""

from typing import Protocol

from apprise import Apprise, NotifyFormat

from availability.exceptions import NotificationDeliveryError
from availability.services.notifications import NotificationPayload
from availability.settings.models import NotificationsModel
from availability.utils.logging import logger


class NotificationSink(Protocol):
    def send(self, payload: NotificationPayload) -> None:
        """Deliver `payload`, raising NotificationDeliveryError on failure."""
        ...


class AppriseNotificationSink:
    """Delivers notifications to every configured Apprise service URL"""

    def __init__(self, settings: NotificationsModel, apprise: Apprise | None = None):
        self.settings = settings
        self.apprise = apprise if apprise is not None else Apprise()
        self._initialize_apprise()

    def _initialize_apprise(self):
        """Initialize Apprise with configured service URLs."""
        if not self.settings.enabled:
            logger.debug("Notifications are disabled in settings")
            return

        for service_url in self.settings.service_urls:
            # Add markdown format for Discord webhooks
            if "discord" in service_url and "format=" not in service_url:
                separator = "&" if "?" in service_url else "?"
                service_url = f"{service_url}{separator}format=markdown"
            if not self.apprise.add(service_url):
                logger.warning(f"Failed to add service URL {service_url[:50]}...")
                continue
            logger.debug(f"Added notification service: {service_url[:50]}...")

        if len(self.apprise) > 0:
            logger.success(
                f"Notification sink initialized with {len(self.apprise)} service(s)"
            )

    def send(self, payload: NotificationPayload) -> None:
        if not self.settings.enabled:
            logger.debug(f"Notifications disabled, not sending {payload.log_string}")
            return

        if payload.category.value not in self.settings.on_event:
            logger.debug(
                f"Skipping {payload.log_string}, {payload.category.value} not in on_event"
            )
            return

        if len(self.apprise) == 0:
            logger.debug("No external notification services configured")
            return

        title = f"{payload.event}: {payload.subject}"
        if not self.apprise.notify(
            title=title,
            body=self._body(payload),
            body_format=NotifyFormat.MARKDOWN,
        ):
            raise NotificationDeliveryError(
                f"Apprise could not deliver to any of {len(self.apprise)} service(s)"
            )

    @staticmethod
    def _body(payload: NotificationPayload) -> str:
        lines = [f"**{payload.subject}**"]
        if payload.message:
            lines.append(payload.message)
        for extra in payload.extra:
            lines.append(f"**{extra.name}:** {extra.value}")
        if payload.notify_user_name:
            lines.append(f"**Requested By:** {payload.notify_user_name}")
        if payload.image:
            lines.append(payload.image)
        return "\n\n".join(lines)


class Dispatcher:
    """
    Best-effort delivery of notification payloads.

    A failed send is logged with enough context to replay it by hand and is
    then dropped; retrying belongs to the transport.
    """

    def __init__(self, sink: NotificationSink):
        self.sink = sink

    def send(self, payload: NotificationPayload) -> bool:
        try:
            self.sink.send(payload)
        except Exception as e:
            logger.error(
                f"Failed to send {payload.category.value} notification "
                f"(media_id={payload.media_id}, request_id={payload.request_id}, "
                f"is4k={payload.is4k}): {e}"
            )
            return False

        logger.log("NOTIFICATION", f"Dispatched {payload.log_string}")
        return True
