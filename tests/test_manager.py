"""Tests for the manager facade helpers."""

import pytest
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import declarative_base

from conftest import Article, Post
from slugtrail import SlugConfig, SlugManager


def test_to_param_prefers_persisted_slug(session, articles) -> None:
    article = Article(title="Apple")
    articles.save(session, article)
    session.commit()

    assert articles.to_param(article) == "apple"

    article.slug = "renamed"
    assert articles.to_param(article) == "apple"


def test_to_param_falls_back_to_key(session, articles) -> None:
    article = Article(title=None)
    articles.save(session, article)
    session.commit()

    assert articles.to_param(article) == str(article.id)
    assert articles.to_param(Article(title="x")) is None


def test_current_slug_uses_history(session, posts, articles) -> None:
    post = Post(title="Apple")
    posts.save(session, post)
    session.commit()
    assert posts.current_slug(session, post) == "apple"

    article = Article(title="Apple")
    articles.save(session, article)
    session.commit()
    assert articles.current_slug(session, article) == "apple"
    assert articles.history(session, article) == []


def test_remove_unregisters_purge(session, posts) -> None:
    post = Post(title="Apple")
    posts.save(session, post)
    session.commit()
    post_id = post.id

    posts.remove()
    session.delete(post)
    session.commit()

    assert [r.slug for r in posts.store.records_for(session, post_id)] == ["apple"]


def test_rejects_unknown_columns_and_composite_keys() -> None:
    Other = declarative_base()

    class Tagging(Other):
        __tablename__ = "taggings"

        post_id = Column(Integer, primary_key=True)
        tag_id = Column(Integer, primary_key=True)
        slug = Column(String)

    with pytest.raises(ValueError, match="primary key"):
        SlugManager(Tagging, SlugConfig())
    with pytest.raises(ValueError, match="headline"):
        SlugManager(Article, SlugConfig(source_column="headline"))
