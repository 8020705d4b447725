"""Media and Season entities"""

from datetime import datetime
from typing import TYPE_CHECKING

import sqlalchemy
from sqlalchemy import ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, MappedAsDataclass, mapped_column, relationship

from availability.db.base_model import Base
from availability.media.state import MediaStatus, MediaType

if TYPE_CHECKING:
    from availability.media.request import MediaRequest


class Media(MappedAsDataclass, Base, kw_only=True, eq=False):
    """Availability record for one title, tracked per standard and 4K variant"""

    __tablename__ = "Media"

    id: Mapped[int] = mapped_column(sqlalchemy.Integer, primary_key=True, init=False)
    media_type: Mapped[MediaType] = mapped_column(
        sqlalchemy.Enum(MediaType), nullable=False
    )
    tmdb_id: Mapped[int | None] = mapped_column(default=None)
    tvdb_id: Mapped[int | None] = mapped_column(default=None)
    mb_id: Mapped[str | None] = mapped_column(default=None)
    status: Mapped[MediaStatus] = mapped_column(
        sqlalchemy.Enum(MediaStatus),
        default=MediaStatus.UNKNOWN,
        active_history=True,
    )
    status4k: Mapped[MediaStatus] = mapped_column(
        sqlalchemy.Enum(MediaStatus),
        default=MediaStatus.UNKNOWN,
        active_history=True,
    )
    last_season_change: Mapped[datetime] = mapped_column(
        sqlalchemy.DateTime, default_factory=datetime.now, active_history=True
    )
    created_at: Mapped[datetime] = mapped_column(
        sqlalchemy.DateTime, default_factory=datetime.now
    )
    updated_at: Mapped[datetime] = mapped_column(
        sqlalchemy.DateTime, default_factory=datetime.now, onupdate=datetime.now
    )
    seasons: Mapped[list["Season"]] = relationship(
        back_populates="media",
        order_by="Season.season_number",
        lazy="selectin",
        cascade="all, delete-orphan",
        default_factory=list,
    )
    requests: Mapped[list["MediaRequest"]] = relationship(
        back_populates="media",
        order_by="MediaRequest.id",
        lazy="selectin",
        cascade="all, delete-orphan",
        default_factory=list,
        repr=False,
    )

    __table_args__ = (
        Index("ix_media_tmdb_id", "tmdb_id"),
        Index("ix_media_tvdb_id", "tvdb_id"),
        Index("ix_media_mb_id", "mb_id"),
        Index("ix_media_status", "status"),
        Index("ix_media_status4k", "status4k"),
    )

    def get_status(self, is4k: bool) -> MediaStatus:
        return self.status4k if is4k else self.status

    @property
    def log_string(self) -> str:
        external_id = self.tmdb_id or self.tvdb_id or self.mb_id
        return f"{self.media_type.value} {external_id} (media {self.id})"


class Season(MappedAsDataclass, Base, kw_only=True, eq=False):
    """Per-season availability record of a series"""

    __tablename__ = "Season"

    id: Mapped[int] = mapped_column(sqlalchemy.Integer, primary_key=True, init=False)
    season_number: Mapped[int] = mapped_column(sqlalchemy.Integer)
    status: Mapped[MediaStatus] = mapped_column(
        sqlalchemy.Enum(MediaStatus),
        default=MediaStatus.UNKNOWN,
        active_history=True,
    )
    status4k: Mapped[MediaStatus] = mapped_column(
        sqlalchemy.Enum(MediaStatus),
        default=MediaStatus.UNKNOWN,
        active_history=True,
    )
    media_id: Mapped[int] = mapped_column(
        ForeignKey("Media.id", ondelete="CASCADE"), init=False
    )
    media: Mapped[Media] = relationship(
        back_populates="seasons", init=False, repr=False
    )

    __table_args__ = (
        UniqueConstraint("media_id", "season_number", name="uq_season_media_number"),
        Index("ix_season_media_id", "media_id"),
    )

    def get_status(self, is4k: bool) -> MediaStatus:
        return self.status4k if is4k else self.status
