from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PostCreate(BaseModel):
    title: str
    subtitle: str | None = None
    content: str
    published: datetime | None = None
    draft: bool = False


class PostUpdate(BaseModel):
    title: str | None = None
    subtitle: str | None = None
    content: str | None = None
    published: datetime | None = None


class PostRevise(BaseModel):
    title: str
    subtitle: str | None = None
    content: str


class DraftUpdate(BaseModel):
    draft: bool


class PostOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    subtitle: str | None = None
    published: datetime
    content: str
    draft: bool


class PublishedOut(BaseModel):
    id: UUID
    slug: str


class PostSnapshot(BaseModel):
    """The serialized form stored in an archive entry's ``data``."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    subtitle: str | None = None
    published: datetime
    content: str
    draft: bool = False


class ArchiveEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    seq: int
    id: UUID
    data: str | None = None
    archived_at: datetime


class SlugBind(BaseModel):
    slug: str
    id: UUID


class SlugRename(BaseModel):
    new_slug: str
    id: UUID
    collapse: bool = False


class SlugOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    slug: str
    id: UUID
    newslug: str | None = None


class RecentPostOut(BaseModel):
    slug: str
    title: str
    subtitle: str | None = None
    published: datetime
