from __future__ import annotations

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import ArchiveEntry, Post
from .schemas import PostSnapshot

logger = logging.getLogger(__name__)


def snapshot(post: Post) -> str:
    return PostSnapshot.model_validate(post).model_dump_json()


def archive(db: Session, post_id: uuid.UUID, data: str | None) -> ArchiveEntry:
    """Append a superseded version of a post.

    Every call adds a new entry, even for identical data. Does not commit; the
    caller decides the transaction boundary.
    """
    entry = ArchiveEntry(id=post_id, data=data)
    db.add(entry)
    db.flush()
    logger.debug("archived version %s of post %s", entry.seq, post_id)
    return entry


def history(db: Session, post_id: uuid.UUID) -> list[ArchiveEntry]:
    """Archive entries for a post, oldest first. Works for deleted posts too."""
    return list(
        db.scalars(
            select(ArchiveEntry)
            .where(ArchiveEntry.id == post_id)
            .order_by(ArchiveEntry.seq.asc())
        )
    )


def load_snapshot(entry: ArchiveEntry) -> PostSnapshot | None:
    if entry.data is None:
        return None
    return PostSnapshot.model_validate_json(entry.data)
