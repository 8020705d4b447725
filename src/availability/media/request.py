"""Request entities"""

from datetime import datetime

import sqlalchemy
from sqlalchemy import ForeignKey, Index
from sqlalchemy.orm import Mapped, MappedAsDataclass, mapped_column, relationship

from availability.db.base_model import Base
from availability.media.item import Media
from availability.media.state import MediaRequestStatus


class MediaRequest(MappedAsDataclass, Base, kw_only=True, eq=False):
    """A user's outstanding ask for a title, optionally a subset of its seasons"""

    __tablename__ = "MediaRequest"

    id: Mapped[int] = mapped_column(sqlalchemy.Integer, primary_key=True, init=False)
    status: Mapped[MediaRequestStatus] = mapped_column(
        sqlalchemy.Enum(MediaRequestStatus), default=MediaRequestStatus.PENDING
    )
    is4k: Mapped[bool] = mapped_column(sqlalchemy.Boolean, default=False)
    requested_by_id: Mapped[int] = mapped_column(sqlalchemy.Integer)
    requested_by: Mapped[str | None] = mapped_column(default=None)
    media_id: Mapped[int] = mapped_column(
        ForeignKey("Media.id", ondelete="CASCADE"), init=False
    )
    media: Mapped[Media] = relationship(
        back_populates="requests", init=False, repr=False
    )
    seasons: Mapped[list["SeasonRequest"]] = relationship(
        back_populates="request",
        order_by="SeasonRequest.season_number",
        lazy="selectin",
        cascade="all, delete-orphan",
        default_factory=list,
    )
    created_at: Mapped[datetime] = mapped_column(
        sqlalchemy.DateTime, default_factory=datetime.now
    )
    updated_at: Mapped[datetime] = mapped_column(
        sqlalchemy.DateTime, default_factory=datetime.now, onupdate=datetime.now
    )

    __table_args__ = (
        Index("ix_mediarequest_media_id_is4k", "media_id", "is4k"),
        Index("ix_mediarequest_status", "status"),
    )


class SeasonRequest(MappedAsDataclass, Base, kw_only=True, eq=False):
    __tablename__ = "SeasonRequest"

    id: Mapped[int] = mapped_column(sqlalchemy.Integer, primary_key=True, init=False)
    season_number: Mapped[int] = mapped_column(sqlalchemy.Integer)
    request_id: Mapped[int] = mapped_column(
        ForeignKey("MediaRequest.id", ondelete="CASCADE"), init=False
    )
    request: Mapped[MediaRequest] = relationship(
        back_populates="seasons", init=False, repr=False
    )
