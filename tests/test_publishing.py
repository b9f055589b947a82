from datetime import datetime

import pytest

from blogstore.posts import create_post, get_post
from blogstore.publishing import publish_post, revise_post
from blogstore.resolver import ResolutionKind, resolve
from blogstore.schemas import PostCreate, PostRevise
from blogstore.settings import Settings
from blogstore.slugs import live_slugs, lookup


@pytest.fixture
def published(db):
    post, slug = publish_post(
        db, PostCreate(title="Original", content="v1", published=datetime(2025, 2, 3, 10, 0))
    )
    return post, slug


def revise(db, post_id, title, collapse=None):
    return revise_post(db, post_id, PostRevise(title=title, content=f"about {title}"), collapse=collapse)[1]


def test_title_round_trip_forwards_every_old_slug_to_the_newest(db, published):
    post, original = published

    one = revise(db, post.id, "One")
    two = revise(db, post.id, "Two")
    final = revise(db, post.id, "One")

    # "one-<date>" is taken by history, so the return to that title gets a numbered slug
    assert final == f"{one}-1"
    assert live_slugs(db, post.id) == [final]
    for slug in (original, one, two):
        resolution = resolve(db, slug)
        assert resolution.kind is ResolutionKind.REDIRECT
        assert resolution.chain == (slug, final)
        assert resolution.post.title == "One"
    assert resolve(db, final).kind is ResolutionKind.RESOLVED


def test_revise_without_collapse_leaves_a_longer_chain(db, published):
    post, original = published

    one = revise(db, post.id, "One", collapse=False)
    two = revise(db, post.id, "Two", collapse=False)

    assert lookup(db, original).newslug == one
    assert resolve(db, original).chain == (original, one, two)


def test_revise_with_unchanged_title_keeps_slug(db, published):
    post, _ = published

    first = revise(db, post.id, "Steady")
    second = revise(db, post.id, "Steady")

    assert second == first
    assert live_slugs(db, post.id) == [first]
    assert get_post(db, post.id).content == "about Steady"


def test_revise_binds_a_slug_for_a_post_that_had_none(db):
    post = create_post(db, title="Bare", content="body")
    assert live_slugs(db, post.id) == []

    slug = revise(db, post.id, "Now Listed")

    assert slug.startswith("now-listed-")
    assert live_slugs(db, post.id) == [slug]
    assert resolve(db, slug).kind is ResolutionKind.RESOLVED


def test_page_url_strips_trailing_slash_from_root():
    assert Settings(PAGE_ROOT="/blog/").page_url("x") == "/blog/x"
    assert Settings(PAGE_ROOT="").page_url("x") == "/x"
