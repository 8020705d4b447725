class AvailabilityError(Exception):
    """Base exception for the availability engine"""


class MetadataLookupError(AvailabilityError):
    """Raised when title/synopsis/artwork could not be fetched for a media"""


class NotificationDeliveryError(AvailabilityError):
    """Raised by a notification sink when a payload could not be delivered"""
