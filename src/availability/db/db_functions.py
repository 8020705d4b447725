from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from availability.media.item import Media
from availability.media.request import MediaRequest
from availability.media.snapshot import MediaSnapshot, RequestSnapshot
from availability.media.state import MediaRequestStatus
from availability.utils.logging import logger

from .db import db


class RequestStore:
    """
    SQL-backed request queries and the single-row conditional status update
    used for auto-approval.
    """

    def __init__(self, session_factory: Callable[[], Session] | None = None):
        self.session_factory = session_factory or db.Session

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self.session_factory() as session:
            yield session

    def get_related_requests(self, media_id: int, is4k: bool) -> list[RequestSnapshot]:
        """
        Retrieve every non-declined request for a media variant.

        Parameters:
            media_id (int): Primary key of the Media the requests belong to.
            is4k (bool): Which variant the requests must track.

        Returns:
            list[RequestSnapshot]: Detached snapshots ordered by request id.
        """

        query = (
            select(MediaRequest)
            .where(MediaRequest.media_id == media_id)
            .where(MediaRequest.is4k == is4k)
            .where(MediaRequest.status != MediaRequestStatus.DECLINED)
            .order_by(MediaRequest.id)
        )

        with self._session() as session:
            requests = session.execute(query).scalars().all()
            return [RequestSnapshot.from_request(request) for request in requests]

    def get_pending_requests(self, media_id: int, is4k: bool) -> list[RequestSnapshot]:
        query = (
            select(MediaRequest)
            .where(MediaRequest.media_id == media_id)
            .where(MediaRequest.is4k == is4k)
            .where(MediaRequest.status == MediaRequestStatus.PENDING)
            .order_by(MediaRequest.id)
        )

        with self._session() as session:
            requests = session.execute(query).scalars().all()
            return [RequestSnapshot.from_request(request) for request in requests]

    def approve_if_pending(self, request_id: int) -> bool:
        """
        Move a request from PENDING to APPROVED in one conditional update.

        Returns:
            bool: True if the row was updated, False if it was no longer pending
            (approved, declined or deleted concurrently).
        """

        statement = (
            update(MediaRequest)
            .where(MediaRequest.id == request_id)
            .where(MediaRequest.status == MediaRequestStatus.PENDING)
            .values(status=MediaRequestStatus.APPROVED, updated_at=datetime.now())
            .execution_options(synchronize_session=False)
        )

        with self._session() as session:
            result = session.execute(statement)
            session.commit()

        updated = result.rowcount == 1
        logger.log("DATABASE", f"Conditional approve of request {request_id}: {updated}")
        return updated

    def get_media_snapshot(self, media_id: int) -> MediaSnapshot | None:
        """Read the current snapshot of a media, for callers without an ORM hook."""

        with self._session() as session:
            media = session.execute(
                select(Media).where(Media.id == media_id)
            ).scalar_one_or_none()
            if media is None:
                return None
            return MediaSnapshot.from_media(media)
