import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from blogstore.archive import archive, history, load_snapshot
from blogstore.errors import NotFound, ValidationError
from blogstore.models import ArchiveEntry
from blogstore.posts import create_post, delete_post, get_post, recent_posts, set_draft, update_post
from blogstore.schemas import PostUpdate
from blogstore.slugs import bind, lookup, rename


def test_create_then_get_returns_fields_and_defaults_to_published(db):
    post = create_post(db, title="First", subtitle="sub", content="hello")

    fetched = get_post(db, post.id)
    assert fetched.title == "First"
    assert fetched.subtitle == "sub"
    assert fetched.content == "hello"
    assert fetched.draft is False
    assert fetched.published is not None


def test_published_is_normalised_to_utc_after_reload(db):
    local = datetime(2025, 2, 3, 10, 0, tzinfo=timezone(timedelta(hours=2)))
    post = create_post(db, title="Offset", content="body", published=local)
    assert post.published.utcoffset() == timedelta(0)

    db.expunge_all()
    fetched = get_post(db, post.id)
    assert fetched.published.utcoffset() == timedelta(0)
    assert fetched.published == local


def test_create_assigns_distinct_ids(db):
    first = create_post(db, title="A", content="a")
    second = create_post(db, title="A", content="a")
    assert isinstance(first.id, uuid.UUID)
    assert first.id != second.id


@pytest.mark.parametrize("title,content", [("", "body"), ("   ", "body"), ("Title", "")])
def test_create_rejects_empty_title_or_content(db, title, content):
    with pytest.raises(ValidationError):
        create_post(db, title=title, content=content)


def test_get_missing_post_raises_not_found(db):
    with pytest.raises(NotFound):
        get_post(db, uuid.uuid4())


def test_update_archives_previous_content_first(db):
    post = create_post(db, title="Title", content="version one")

    update_post(db, post.id, PostUpdate(content="version two"))

    assert get_post(db, post.id).content == "version two"
    entries = history(db, post.id)
    assert len(entries) == 1
    snapshot = load_snapshot(entries[-1])
    assert snapshot.content == "version one"
    assert snapshot.title == "Title"
    assert snapshot.id == post.id


def test_history_keeps_insertion_order(db):
    post = create_post(db, title="Title", content="v1")
    update_post(db, post.id, PostUpdate(content="v2"))
    update_post(db, post.id, PostUpdate(content="v3"))

    contents = [load_snapshot(entry).content for entry in history(db, post.id)]
    assert contents == ["v1", "v2"]


def test_update_without_text_change_does_not_archive(db):
    post = create_post(db, title="Title", content="same")
    update_post(db, post.id, PostUpdate(content="same", published=datetime(2024, 1, 1)))
    assert history(db, post.id) == []


def test_rejected_update_leaves_post_and_archive_untouched(db):
    post = create_post(db, title="Title", content="keep me")

    with pytest.raises(ValidationError):
        update_post(db, post.id, PostUpdate(title="New", content=""))

    fetched = get_post(db, post.id)
    assert fetched.title == "Title"
    assert fetched.content == "keep me"
    assert history(db, post.id) == []


def test_archive_appends_every_call(db):
    post_id = uuid.uuid4()
    archive(db, post_id, "same")
    archive(db, post_id, "same")
    db.commit()

    assert [entry.data for entry in history(db, post_id)] == ["same", "same"]


def test_set_draft_keeps_content_and_published(db):
    post = create_post(db, title="Title", content="body", published=datetime(2024, 5, 1, 12, 0))
    published = get_post(db, post.id).published

    set_draft(db, post.id, True)

    fetched = get_post(db, post.id)
    assert fetched.draft is True
    assert fetched.content == "body"
    assert fetched.published == published
    assert history(db, post.id) == []


def test_delete_keeps_archive_and_slugs(db):
    post = create_post(db, title="Title", content="v1")
    update_post(db, post.id, PostUpdate(content="v2"))
    bind(db, "title", post.id)

    delete_post(db, post.id)

    with pytest.raises(NotFound):
        get_post(db, post.id)
    assert [load_snapshot(entry).content for entry in history(db, post.id)] == ["v1"]
    assert lookup(db, "title").id == post.id
    assert db.scalar(select(ArchiveEntry).where(ArchiveEntry.id == post.id)) is not None


def test_recent_posts_lists_live_non_draft_posts_newest_first(db):
    old = create_post(db, title="Old", content="x", published=datetime(2024, 1, 1))
    new = create_post(db, title="New", subtitle="fresh", content="x", published=datetime(2024, 6, 1))
    hidden = create_post(db, title="Hidden", content="x", published=datetime(2024, 7, 1), draft=True)
    create_post(db, title="Unbound", content="x", published=datetime(2024, 8, 1))

    bind(db, "old", old.id)
    bind(db, "new-b", new.id)
    bind(db, "new-a", new.id)
    bind(db, "hidden", hidden.id)
    rename(db, "old", "old-renamed", old.id)

    recent = recent_posts(db)
    assert [(item.slug, item.title) for item in recent] == [("new-a", "New"), ("old-renamed", "Old")]
    assert recent[0].subtitle == "fresh"

    assert [item.slug for item in recent_posts(db, limit=1)] == ["new-a"]
