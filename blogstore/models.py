from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Text, TypeDecorator, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timestamps stored and loaded as aware UTC.

    SQLite keeps no offset, so values read back from it would otherwise be naive.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return as_utc(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return as_utc(value)


class Post(Base):
    __tablename__ = "post"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    subtitle: Mapped[str | None] = mapped_column(Text, nullable=True)
    published: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    draft: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"Post(id={self.id!s}, title={self.title!r}, draft={self.draft})"


class ArchiveEntry(Base):
    """A superseded version of a post. Rows are only ever inserted."""

    __tablename__ = "old"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # no foreign key: entries outlive the post they were taken from
    id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    data: Mapped[str | None] = mapped_column(Text, nullable=True)
    archived_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)


class SlugRecord(Base):
    __tablename__ = "slug"

    slug: Mapped[str] = mapped_column(Text, primary_key=True)
    # checked on bind/rename instead of by the store, so deleting a post leaves its slugs
    id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    newslug: Mapped[str | None] = mapped_column(Text, ForeignKey("slug.slug"), nullable=True)

    @property
    def is_live(self) -> bool:
        return self.newslug is None
