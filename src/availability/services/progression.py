"""Request status advancement triggered by availability"""

from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

from availability.media.snapshot import RequestSnapshot
from availability.media.state import MediaRequestStatus
from availability.utils.logging import logger


class RequestWriter(Protocol):
    def approve_if_pending(self, request_id: int) -> bool:
        """Set status APPROVED where status is PENDING, returning whether a row changed."""
        ...


class RequestProgressionWriter:
    """
    Approves pending requests whose media became available.

    Only PENDING → APPROVED is ever written. Requests that are already
    approved are left alone and count as success; every other status is
    owned by administrators and is never touched here.
    """

    def __init__(self, writer: RequestWriter):
        self.writer = writer

    def advance(self, request: RequestSnapshot) -> bool:
        if request.status == MediaRequestStatus.APPROVED:
            logger.debug(f"{request.log_string} is already approved")
            return True

        if request.status != MediaRequestStatus.PENDING:
            logger.debug(
                f"Not advancing {request.log_string}, status is {request.status.name}"
            )
            return False

        try:
            updated = self.writer.approve_if_pending(request.request_id)
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to auto-approve {request.log_string} "
                f"(media_id={request.media_id}), leaving it pending: {e}"
            )
            return False

        if updated:
            logger.log("REQUEST", f"Auto-approved {request.log_string}")
        else:
            logger.debug(
                f"{request.log_string} changed status concurrently, nothing to approve"
            )

        return True
