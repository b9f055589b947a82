from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .archive import archive, snapshot
from .database import transaction
from .errors import NotFound, ValidationError
from .models import Post, SlugRecord, as_utc, utcnow
from .schemas import PostUpdate, RecentPostOut

logger = logging.getLogger(__name__)

# fields whose change makes an edit content-mutating, and so archived
ARCHIVED_FIELDS = ("title", "subtitle", "content")


def _require_text(field: str, value: str | None) -> None:
    if value is None or not value.strip():
        raise ValidationError(f"{field} must not be empty")


def new_post(
    title: str,
    content: str,
    subtitle: str | None = None,
    published: datetime | None = None,
    draft: bool = False,
) -> Post:
    _require_text("title", title)
    _require_text("content", content)
    return Post(
        id=uuid.uuid4(),
        title=title,
        subtitle=subtitle,
        published=as_utc(published) if published else utcnow(),
        content=content,
        draft=draft,
    )


def insert_post(db: Session, post: Post) -> Post:
    db.add(post)
    db.flush()
    return post


def create_post(
    db: Session,
    *,
    title: str,
    content: str,
    subtitle: str | None = None,
    published: datetime | None = None,
    draft: bool = False,
) -> Post:
    post = new_post(title, content, subtitle=subtitle, published=published, draft=draft)
    with transaction(db):
        insert_post(db, post)
    logger.info("created post %s", post.id)
    return post


def find_post(db: Session, post_id: uuid.UUID) -> Post | None:
    return db.get(Post, post_id)


def get_post(db: Session, post_id: uuid.UUID) -> Post:
    post = find_post(db, post_id)
    if post is None:
        raise NotFound(f"post {post_id} not found")
    return post


def apply_update(db: Session, post: Post, changes: PostUpdate) -> Post:
    fields = changes.model_dump(exclude_unset=True)
    for field in ("title", "content"):
        if field in fields:
            _require_text(field, fields[field])
    if "published" in fields and fields["published"] is None:
        del fields["published"]
    elif "published" in fields:
        fields["published"] = as_utc(fields["published"])

    if any(field in fields and fields[field] != getattr(post, field) for field in ARCHIVED_FIELDS):
        # the old version must be stored before the new one is written
        archive(db, post.id, snapshot(post))

    for field, value in fields.items():
        setattr(post, field, value)
    db.flush()
    return post


def update_post(db: Session, post_id: uuid.UUID, changes: PostUpdate) -> Post:
    with transaction(db):
        post = get_post(db, post_id)
        apply_update(db, post, changes)
    logger.info("updated post %s", post_id)
    return post


def set_draft(db: Session, post_id: uuid.UUID, draft: bool) -> Post:
    with transaction(db):
        post = get_post(db, post_id)
        post.draft = draft
        db.flush()
    logger.info("post %s draft=%s", post_id, draft)
    return post


def delete_post(db: Session, post_id: uuid.UUID) -> None:
    """Remove the live post. Its slugs and archive entries are left in place."""
    with transaction(db):
        post = get_post(db, post_id)
        db.delete(post)
    logger.info("deleted post %s", post_id)


def recent_posts(db: Session, limit: int | None = None) -> list[RecentPostOut]:
    """Non-draft posts that have a live slug, newest first.

    A post with several live slugs is listed once, under the first one in sort order.
    """
    slug = func.min(SlugRecord.slug).label("slug")
    stmt = (
        select(Post.id, slug, Post.title, Post.subtitle, Post.published)
        .join(SlugRecord, SlugRecord.id == Post.id)
        .where(Post.draft.is_(False), SlugRecord.newslug.is_(None))
        .group_by(Post.id, Post.title, Post.subtitle, Post.published)
        .order_by(Post.published.desc(), Post.title.asc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)

    return [
        RecentPostOut(slug=row.slug, title=row.title, subtitle=row.subtitle, published=row.published)
        for row in db.execute(stmt)
    ]
