"""
SQLAlchemy hook feeding media writes to the availability engine.

The snapshot before the write is captured in `before_flush`, from attribute
history, so it reflects the committed row rather than pending changes. The
snapshot after the write is taken in `after_flush` and the pair is handed
over only once the transaction commits. Rolling back a savepoint forgets the
writes first flushed inside it and nothing else.
"""

from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session, SessionTransaction

from availability.media.item import Media, Season
from availability.media.snapshot import MediaSnapshot, SeasonSnapshot
from availability.utils.logging import logger

PENDING_KEY = "availability_pending_writes"


class MediaWriteHandler(Protocol):
    def on_media_write(self, old: MediaSnapshot | None, new: MediaSnapshot) -> Any: ...


@dataclass
class PendingWrite:
    media: Media
    old: MediaSnapshot | None
    new: MediaSnapshot | None = None
    # Innermost SAVEPOINT open when the write was first flushed
    savepoint: SessionTransaction | None = None


def _committed(obj: Any, key: str) -> Any:
    """The value of `key` as it was loaded from the database."""
    history = inspect(obj).attrs[key].history
    if history.deleted:
        return history.deleted[0]
    return getattr(obj, key)


EVENTS = (
    "before_flush",
    "after_flush",
    "before_commit",
    "after_commit",
    "after_soft_rollback",
    "after_transaction_end",
)


class MediaSubscriber:
    def __init__(self, handler: MediaWriteHandler):
        self.handler = handler
        self._targets: list[Any] = []

    def listen(self, target: Any):
        """Attach to a Session, a sessionmaker or a Session subclass."""
        if any(existing is target for existing in self._targets):
            return

        for name in EVENTS:
            event.listen(target, name, getattr(self, name))
        self._targets.append(target)

    def remove(self):
        for target in self._targets:
            for name in EVENTS:
                event.remove(target, name, getattr(self, name))
        self._targets = []

    def before_flush(self, session: Session, flush_context, instances):
        pending: dict[int, PendingWrite] = session.info.setdefault(PENDING_KEY, {})

        for obj in [*session.new, *session.dirty]:
            if isinstance(obj, Media):
                media = obj
            elif isinstance(obj, Season):
                media = obj.media
            else:
                continue

            if media is None or id(media) in pending:
                continue

            pending[id(media)] = PendingWrite(
                media=media,
                old=self._old_snapshot(session, media),
                savepoint=session.get_nested_transaction(),
            )

    def after_flush(self, session: Session, flush_context):
        for write in session.info.get(PENDING_KEY, {}).values():
            write.new = MediaSnapshot.from_media(write.media)

    def before_commit(self, session: Session):
        # Writes whose later changes were undone by a savepoint rollback
        with session.no_autoflush:
            for write in list(session.info.get(PENDING_KEY, {}).values()):
                if write.new is None:
                    write.new = MediaSnapshot.from_media(write.media)

    def after_commit(self, session: Session):
        pending: dict[int, PendingWrite] = session.info.pop(PENDING_KEY, {})

        for write in pending.values():
            if write.new is None:
                continue
            try:
                self.handler.on_media_write(write.old, write.new)
            except Exception:
                logger.exception(f"Failed to hand over write to {write.new.log_string}")

    def after_soft_rollback(self, session: Session, previous_transaction: SessionTransaction):
        if not previous_transaction.nested:
            session.info.pop(PENDING_KEY, None)
            return

        pending: dict[int, PendingWrite] = session.info.get(PENDING_KEY, {})
        for key, write in list(pending.items()):
            if _opened_within(write.savepoint, previous_transaction):
                del pending[key]
            else:
                # Rolled back rows are expired, snapshot them again before commit
                write.new = None

    def after_transaction_end(self, session: Session, transaction: SessionTransaction):
        if transaction.parent is None:
            session.info.pop(PENDING_KEY, None)

    def _old_snapshot(self, session: Session, media: Media) -> MediaSnapshot | None:
        if media in session.new:
            return None

        history = inspect(media).attrs.seasons.history
        if history.added or history.deleted or history.unchanged:
            seasons = [*history.unchanged, *history.deleted]
        else:
            seasons = list(media.seasons)

        return MediaSnapshot(
            media_id=media.id,
            media_type=media.media_type,
            status=_committed(media, "status"),
            status4k=_committed(media, "status4k"),
            seasons=tuple(
                SeasonSnapshot(
                    season_number=_committed(season, "season_number"),
                    status=_committed(season, "status"),
                    status4k=_committed(season, "status4k"),
                )
                for season in seasons
                if season not in session.new
            ),
            last_season_change=_committed(media, "last_season_change"),
            tmdb_id=media.tmdb_id,
            tvdb_id=media.tvdb_id,
            mb_id=media.mb_id,
        )


def _opened_within(
    savepoint: SessionTransaction | None, transaction: SessionTransaction
) -> bool:
    while savepoint is not None:
        if savepoint is transaction:
            return True
        savepoint = savepoint.parent
    return False
