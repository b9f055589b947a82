from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .database import transaction
from .errors import ConflictError, NotFound, ValidationError
from .models import Post, SlugRecord
from .settings import settings
from .utils import post_slug

logger = logging.getLogger(__name__)

# unreserved URL characters, so PAGE_ROOT + "/" + slug is always a usable path
SLUG_PATTERN = re.compile(r"[A-Za-z0-9._~-]+")


def _require_slug(slug: str | None) -> None:
    if slug is None or not slug.strip():
        raise ValidationError("slug must not be empty")
    if not SLUG_PATTERN.fullmatch(slug) or slug in (".", ".."):
        raise ValidationError(f"slug {slug!r} may only contain letters, digits and . _ ~ -")


def _require_post(db: Session, post_id: uuid.UUID) -> None:
    if db.get(Post, post_id) is None:
        raise NotFound(f"post {post_id} not found")


def find_slug(db: Session, slug: str) -> SlugRecord | None:
    return db.get(SlugRecord, slug)


def lookup(db: Session, slug: str) -> SlugRecord:
    """Single record for ``slug``; forward pointers are not followed."""
    record = find_slug(db, slug)
    if record is None:
        raise NotFound(f"slug {slug!r} not found")
    return record


def insert_slug(db: Session, slug: str, post_id: uuid.UUID) -> SlugRecord:
    _require_slug(slug)
    _require_post(db, post_id)
    if find_slug(db, slug) is not None:
        raise ConflictError(f"slug {slug!r} already exists")

    record = SlugRecord(slug=slug, id=post_id, newslug=None)
    db.add(record)
    try:
        db.flush()
    except IntegrityError as exc:
        raise ConflictError(f"slug {slug!r} already exists") from exc
    return record


def bind(db: Session, slug: str, post_id: uuid.UUID) -> SlugRecord:
    with transaction(db):
        record = insert_slug(db, slug, post_id)
    logger.info("bound slug %r to post %s", slug, post_id)
    return record


def rename_slug(
    db: Session,
    old_slug: str,
    new_slug: str,
    post_id: uuid.UUID,
    collapse: bool = False,
) -> SlugRecord:
    old = lookup(db, old_slug)
    if old.id != post_id:
        raise ConflictError(f"slug {old_slug!r} belongs to post {old.id}, not {post_id}")
    if not old.is_live:
        raise ConflictError(f"slug {old_slug!r} was already renamed to {old.newslug!r}")

    # the new slug has to exist before anything points at it
    record = insert_slug(db, new_slug, post_id)
    old.newslug = new_slug
    db.flush()

    if collapse:
        db.execute(
            update(SlugRecord)
            .where(
                SlugRecord.id == post_id,
                SlugRecord.newslug.is_not(None),
                SlugRecord.slug != new_slug,
            )
            .values(newslug=new_slug)
            .execution_options(synchronize_session="fetch")
        )
        db.flush()
    return record


def rename(
    db: Session,
    old_slug: str,
    new_slug: str,
    post_id: uuid.UUID,
    collapse: bool = False,
) -> SlugRecord:
    """Make ``new_slug`` the live slug and turn ``old_slug`` into a forward pointer.

    Both writes share one transaction, so readers never see ``old_slug``
    pointing at a slug that does not exist yet. With ``collapse`` every other
    forwarding slug of the post is repointed straight at ``new_slug``.
    """
    with transaction(db):
        record = rename_slug(db, old_slug, new_slug, post_id, collapse=collapse)
    logger.info("renamed slug %r -> %r for post %s", old_slug, new_slug, post_id)
    return record


def live_slugs(db: Session, post_id: uuid.UUID) -> list[str]:
    return list(
        db.scalars(
            select(SlugRecord.slug)
            .where(SlugRecord.id == post_id, SlugRecord.newslug.is_(None))
            .order_by(SlugRecord.slug.asc())
        )
    )


def suggest_slug(db: Session, title: str, published: datetime) -> str:
    base = post_slug(title, published, settings.SLUG_TITLE_CHARS)
    taken = db.scalar(select(func.count()).select_from(SlugRecord).where(SlugRecord.slug.like(f"{base}%")))
    if not taken:
        return base

    candidate = f"{base}-{taken}"
    while find_slug(db, candidate) is not None:
        taken += 1
        candidate = f"{base}-{taken}"
    return candidate
