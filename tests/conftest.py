from pathlib import Path

import pytest
from sqlalchemy import Column, Integer, String, UniqueConstraint

from slugtrail import Base, Database, SlugConfig, SlugManager


class Post(Base):
    """Slugged with history."""

    __tablename__ = "test_posts"

    id = Column(Integer, primary_key=True)
    title = Column(String)
    slug = Column(String, unique=True)

    def __repr__(self):
        return f"<Post {self.id} {self.slug!r}>"


class Article(Base):
    """Slugged without history."""

    __tablename__ = "test_articles"

    id = Column(Integer, primary_key=True)
    title = Column(String)
    slug = Column(String, unique=True)


class Page(Base):
    """Slugged with history, unique per site."""

    __tablename__ = "test_pages"

    id = Column(Integer, primary_key=True)
    site_id = Column(Integer, nullable=False)
    title = Column(String)
    slug = Column(String)

    __table_args__ = (UniqueConstraint("site_id", "slug"),)


@pytest.fixture
def db(tmp_path: Path):
    database = Database(f"sqlite:///{tmp_path / 'slugs.db'}")
    yield database
    database.dispose()


@pytest.fixture
def session(db):
    session = db.get_session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def posts():
    manager = SlugManager(Post, SlugConfig(source_column="title", history=True))
    yield manager
    manager.remove()


@pytest.fixture
def articles():
    return SlugManager(Article, SlugConfig(source_column="title"))


@pytest.fixture
def pages():
    manager = SlugManager(
        Page, SlugConfig(source_column="title", history=True, scope_columns=("site_id",))
    )
    yield manager
    manager.remove()


def save_all(manager, session, subjects):
    """Save and commit subjects one at a time, returning their slugs."""
    slugs = []
    for subject in subjects:
        slugs.append(manager.save(session, subject))
        session.commit()
    return slugs
