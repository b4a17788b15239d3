"""Tests for slug assignment and save orchestration."""

import pytest

from slugtrail import ConflictError, ReservedWordError, SlugRecord

from conftest import Article, Page, Post, save_all


def _slugs(posts, session, post) -> list:
    return [record.slug for record in posts.history(session, post)]


def test_blank_candidate_keeps_previous_slug(session, posts) -> None:
    post = Post(title="Apple")
    posts.save(session, post)
    session.commit()

    posts.assign(session, post, "   ")
    posts.assign(session, post, None)
    session.commit()

    assert post.slug == "apple"
    assert _slugs(posts, session, post) == ["apple"]


def test_reassigning_held_slug_is_a_no_op(session, posts) -> None:
    post = Post(title="Apple")
    posts.save(session, post)
    session.commit()

    posts.assign(session, post, "apple")
    session.commit()

    assert post.slug == "apple"
    assert _slugs(posts, session, post) == ["apple"]


def test_other_subject_reclaims_retired_slug(session, posts) -> None:
    a = Post(title="X")
    posts.save(session, a)
    session.commit()
    a.title = "Y"
    posts.save(session, a)
    session.commit()

    b = Post(title="Something else")
    posts.assign(session, b, "x")
    session.commit()

    assert b.slug == "x"
    assert _slugs(posts, session, a) == ["y"]
    assert _slugs(posts, session, b) == ["x"]
    assert posts.store.find_by_slug(session, "Post", "x") == [str(b.id)]


def test_subject_reverts_to_its_own_old_slug(session, posts) -> None:
    post = Post(title="X")
    posts.save(session, post)
    session.commit()
    post.title = "Y"
    posts.save(session, post)
    session.commit()

    posts.assign(session, post, "x")
    session.commit()

    assert post.slug == "x"
    assert _slugs(posts, session, post) == ["x", "y"]
    assert posts.current_slug(session, post) == "x"


def test_reverting_by_title_reuses_own_slug(session, posts) -> None:
    post = Post(title="X")
    posts.save(session, post)
    session.commit()
    post.title = "Y"
    posts.save(session, post)
    session.commit()

    post.title = "X"
    assert posts.save(session, post) == "x"
    session.commit()

    assert _slugs(posts, session, post) == ["x", "y"]


def test_reserved_words_are_rejected(session, posts) -> None:
    with pytest.raises(ReservedWordError):
        posts.save(session, Post(title="New"))

    with pytest.raises(ReservedWordError):
        posts.assign(session, Post(title="anything"), "edit")


def test_taken_slug_raises_conflict(session, articles) -> None:
    articles.save(session, Article(title="Apple"))
    session.commit()

    with pytest.raises(ConflictError) as excinfo:
        articles.assign(session, Article(title="Other"), "apple")
    session.rollback()

    assert excinfo.value.slug == "apple"
    assert excinfo.value.subject_type == "Article"


def test_resave_without_changes_keeps_slug(session, articles) -> None:
    first = Article(title="Apple")
    second = Article(title="Apple")
    articles.save(session, first)
    articles.save(session, second)
    session.commit()

    assert articles.save(session, second) == "apple--2"
    assert articles.save(session, second, force=True) == "apple--2"


def test_source_change_to_same_base_keeps_sequenced_slug(session, articles) -> None:
    articles.save(session, Article(title="Apple"))
    second = Article(title="Apple")
    articles.save(session, second)
    session.commit()

    second.title = "APPLE!"
    assert articles.save(session, second) == "apple--2"


def test_source_change_generates_new_slug(session, posts) -> None:
    post = Post(title="Apple")
    posts.save(session, post)
    session.commit()

    post.title = "Banana Split"
    assert posts.save(session, post) == "banana-split"
    session.commit()

    assert _slugs(posts, session, post) == ["banana-split", "apple"]


def test_explicit_slug_wins_and_is_made_unique(session, articles) -> None:
    articles.save(session, Article(title="First", slug="custom"))
    session.commit()

    second = Article(title="Second", slug="custom")
    assert articles.save(session, second) == "custom--2"


def test_missing_source_leaves_slug_empty(session, articles) -> None:
    article = Article(title=None)
    assert articles.save(session, article) is None
    session.commit()

    assert article.id is not None
    assert article.slug is None


def test_explicit_taken_slug_is_written_back_with_history(session, posts) -> None:
    first = Post(title="Apple")
    second = Post(title="Apple")
    assert save_all(posts, session, [first, second]) == ["apple", "apple--2"]

    second.slug = "apple"
    assert posts.save(session, second) == "apple--2"
    session.commit()

    assert second.slug == "apple--2"
    assert posts.current_slug(session, second) == "apple--2"
    assert _slugs(posts, session, second) == ["apple--2"]


def test_unseen_history_holder_raises_conflict(session, posts, monkeypatch) -> None:
    session.add(SlugRecord(subject_type="Post", subject_id="999", scope="", slug="apple"))
    session.commit()
    # A holder that committed after the lock was taken
    monkeypatch.setattr(posts.store, "lock", lambda session, subject, slug: [])

    with pytest.raises(ConflictError) as excinfo:
        posts.assign(session, Post(title="Other"), "apple")
    session.rollback()

    assert excinfo.value.slug == "apple"
    assert excinfo.value.subject_type == "Post"


def test_scope_change_on_save_is_rejected(session, pages) -> None:
    page = Page(site_id=1, title="About")
    pages.save(session, page)
    session.commit()

    page.site_id = 2
    with pytest.raises(ValueError, match="site_id"):
        pages.save(session, page)
    with pytest.raises(ValueError, match="site_id"):
        pages.assign(session, page, "about-us")
