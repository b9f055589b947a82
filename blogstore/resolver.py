"""Slug resolution.

A requested slug is resolved by walking ``newslug`` forward pointers until a
live record (one with no ``newslug``) is reached. The walk runs over an
in-memory arena of slug nodes loaded with a single query, and it guards
against corrupted directories itself: a forward pointer to a missing slug is a
broken chain, and revisiting a slug is a cycle. Both are returned as outcomes,
never raised.
"""
from __future__ import annotations

import enum
import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session, aliased

from .errors import BrokenChain, CycleDetected
from .models import Post, SlugRecord

logger = logging.getLogger(__name__)


class ResolutionKind(str, enum.Enum):
    RESOLVED = "resolved"
    REDIRECT = "redirect"
    NOT_FOUND = "not_found"
    UNPUBLISHED = "unpublished"
    MISSING_POST = "missing_post"
    BROKEN_CHAIN = "broken_chain"
    CYCLE_DETECTED = "cycle_detected"


INTEGRITY_FAILURES = frozenset({ResolutionKind.BROKEN_CHAIN, ResolutionKind.CYCLE_DETECTED})


@dataclass(frozen=True)
class SlugNode:
    slug: str
    post_id: uuid.UUID
    newslug: str | None = None


@dataclass(frozen=True)
class ChainWalk:
    requested: str
    path: tuple[str, ...]
    terminal: SlugNode | None = None
    failure: ResolutionKind | None = None
    # the dangling target of a broken chain, or the revisited slug of a cycle
    culprit: str | None = None

    @property
    def hops(self) -> int:
        return max(len(self.path) - 1, 0)


def walk_chain(start: str, lookup: Callable[[str], SlugNode | None]) -> ChainWalk:
    visited: set[str] = set()
    path: list[str] = []
    current = start

    while True:
        node = lookup(current)
        if node is None:
            if not path:
                return ChainWalk(start, (), failure=ResolutionKind.NOT_FOUND)
            return ChainWalk(start, tuple(path), failure=ResolutionKind.BROKEN_CHAIN, culprit=current)

        visited.add(current)
        path.append(current)

        if node.newslug is None:
            return ChainWalk(start, tuple(path), terminal=node)

        if node.newslug in visited:
            return ChainWalk(start, tuple(path), failure=ResolutionKind.CYCLE_DETECTED, culprit=node.newslug)

        current = node.newslug


@dataclass(frozen=True)
class Resolution:
    kind: ResolutionKind
    requested: str
    # the live slug the chain ended at, when it reached one
    slug: str | None = None
    post: Post | None = None
    chain: tuple[str, ...] = ()
    culprit: str | None = None

    @property
    def found(self) -> bool:
        return self.kind in (ResolutionKind.RESOLVED, ResolutionKind.REDIRECT)

    @property
    def is_integrity_failure(self) -> bool:
        return self.kind in INTEGRITY_FAILURES

    def raise_for_integrity(self) -> None:
        chain = " -> ".join(self.chain)
        if self.kind is ResolutionKind.BROKEN_CHAIN:
            raise BrokenChain(f"slug {self.requested!r} forwards to missing slug {self.culprit!r} ({chain})")
        if self.kind is ResolutionKind.CYCLE_DETECTED:
            raise CycleDetected(f"slug {self.requested!r} loops back to {self.culprit!r} ({chain})")


def load_chain(db: Session, slug: str) -> dict[str, SlugNode]:
    """Every slug record reachable from ``slug`` through forward pointers.

    One recursive query, so the result is a consistent snapshot. UNION drops
    rows already produced, which makes the query finish on cycles too.
    """
    chain = (
        select(SlugRecord.slug, SlugRecord.id, SlugRecord.newslug)
        .where(SlugRecord.slug == slug)
        .cte("chain", recursive=True)
    )
    chain_alias = chain.alias()
    step = aliased(SlugRecord)
    chain = chain.union(
        select(step.slug, step.id, step.newslug).where(step.slug == chain_alias.c.newslug)
    )

    rows = db.execute(select(chain.c.slug, chain.c.id, chain.c.newslug))
    return {row.slug: SlugNode(slug=row.slug, post_id=row.id, newslug=row.newslug) for row in rows}


def resolve_in(arena: Mapping[str, SlugNode], slug: str, find_post: Callable[[uuid.UUID], Post | None]) -> Resolution:
    walk = walk_chain(slug, arena.get)

    if walk.failure is ResolutionKind.NOT_FOUND:
        return Resolution(ResolutionKind.NOT_FOUND, slug)

    if walk.failure is not None:
        logger.error(
            "slug directory integrity failure resolving %r: %s at %r (chain %s)",
            slug,
            walk.failure.value,
            walk.culprit,
            " -> ".join(walk.path),
        )
        return Resolution(walk.failure, slug, chain=walk.path, culprit=walk.culprit)

    terminal = walk.terminal
    post = find_post(terminal.post_id)
    if post is None:
        logger.warning("live slug %r names missing post %s", terminal.slug, terminal.post_id)
        return Resolution(ResolutionKind.MISSING_POST, slug, slug=terminal.slug, chain=walk.path)

    if post.draft:
        return Resolution(ResolutionKind.UNPUBLISHED, slug, slug=terminal.slug, chain=walk.path)

    if walk.hops:
        logger.debug("redirecting %r to %r after %d hop(s)", slug, terminal.slug, walk.hops)
        return Resolution(ResolutionKind.REDIRECT, slug, slug=terminal.slug, post=post, chain=walk.path)

    return Resolution(ResolutionKind.RESOLVED, slug, slug=terminal.slug, post=post, chain=walk.path)


def resolve(db: Session, slug: str) -> Resolution:
    return resolve_in(load_chain(db, slug), slug, lambda post_id: db.get(Post, post_id))
