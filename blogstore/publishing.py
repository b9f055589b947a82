"""Publish and revise: post writes that also maintain the post's slug."""
from __future__ import annotations

import logging
import uuid

from sqlalchemy.orm import Session

from .database import transaction
from .models import Post, utcnow
from .posts import apply_update, get_post, insert_post, new_post
from .schemas import PostCreate, PostRevise, PostUpdate
from .settings import settings
from .slugs import insert_slug, live_slugs, rename_slug, suggest_slug
from .utils import post_slug

logger = logging.getLogger(__name__)


def publish_post(db: Session, payload: PostCreate) -> tuple[Post, str]:
    post = new_post(
        payload.title,
        payload.content,
        subtitle=payload.subtitle,
        published=payload.published,
        draft=payload.draft,
    )
    with transaction(db):
        insert_post(db, post)
        slug = suggest_slug(db, post.title, post.published)
        insert_slug(db, slug, post.id)
    logger.info("published post %s as %r", post.id, slug)
    return post, slug


def revise_post(
    db: Session,
    post_id: uuid.UUID,
    payload: PostRevise,
    collapse: bool | None = None,
) -> tuple[Post, str]:
    """Replace a post's text, restamp its publish time and move it to a matching slug.

    The previous version is archived first. If one of the post's live slugs
    already fits the new title and date it is kept; otherwise the first live
    slug is renamed to a fresh one.
    """
    if collapse is None:
        collapse = settings.COLLAPSE_RENAMES

    with transaction(db):
        post = get_post(db, post_id)
        apply_update(
            db,
            post,
            PostUpdate(
                title=payload.title,
                subtitle=payload.subtitle,
                content=payload.content,
                published=utcnow(),
            ),
        )

        base = post_slug(post.title, post.published, settings.SLUG_TITLE_CHARS)
        live = live_slugs(db, post.id)
        owned = [slug for slug in live if slug.startswith(base)]
        if owned:
            slug = owned[0]
        else:
            slug = suggest_slug(db, post.title, post.published)
            if live:
                rename_slug(db, live[0], slug, post.id, collapse=collapse)
            else:
                insert_slug(db, slug, post.id)

    logger.info("revised post %s, slug %r", post_id, slug)
    return post, slug
