"""
PyTest Configuration and Fixtures
=================================

Shared fixtures for Newsdesk tests.

HTTP tests run the real application against InMemoryDatabase, which mirrors
the behaviour of common.database.Database (ordering, uniqueness, referential
guard) without a PostgreSQL server. Tests that need real SQL use the
``pg_database`` fixture and are skipped unless TEST_DATABASE_URL is set.
"""

import itertools
import os
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from common.database import Database, StorageError, TopicInUseError, UnknownTopicError
from common.model import News, Topic
from main import create_app


class InMemoryDatabase:
    """Dict-backed stand-in for Database with the same public operations."""

    def __init__(self) -> None:
        self.topics: Dict[int, Topic] = {}
        self.news: Dict[int, News] = {}
        self.is_open = False
        self.tables_created = False
        self._topic_ids = itertools.count(1)
        self._news_ids = itertools.count(1)
        self._clock = datetime(2024, 1, 1, 12, 0, 0)

    def _now(self) -> datetime:
        # Strictly increasing so "newest first" ordering is deterministic
        self._clock += timedelta(seconds=1)
        return self._clock

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    def ping(self) -> None:
        if not self.is_open:
            raise StorageError("Database pool is not open. Call open() first.")

    def create_tables(self) -> None:
        self.tables_created = True

    def list_topics(self) -> List[Topic]:
        return sorted(self.topics.values(), key=lambda t: t.name)

    def get_topic(self, topic_id: int) -> Optional[Topic]:
        return self.topics.get(topic_id)

    def _check_unique_name(self, name: str, topic_id: Optional[int] = None) -> None:
        for topic in self.topics.values():
            if topic.name == name and topic.id != topic_id:
                raise StorageError(
                    'duplicate key value violates unique constraint "topics_name_key"'
                )

    def create_topic(self, name: str, description: Optional[str]) -> Topic:
        self._check_unique_name(name)
        now = self._now()
        topic = Topic(
            id=next(self._topic_ids),
            name=name,
            description=description,
            created_at=now,
            updated_at=now,
        )
        self.topics[topic.id] = topic
        return topic

    def update_topic(
        self, topic_id: int, name: str, description: Optional[str]
    ) -> Optional[Topic]:
        if topic_id not in self.topics:
            return None
        self._check_unique_name(name, topic_id)
        topic = self.topics[topic_id].model_copy(
            update={"name": name, "description": description, "updated_at": self._now()}
        )
        self.topics[topic_id] = topic
        return topic

    def delete_topic(self, topic_id: int) -> bool:
        count = sum(1 for n in self.news.values() if n.topic_id == topic_id)
        if count > 0:
            raise TopicInUseError(topic_id, count)
        return self.topics.pop(topic_id, None) is not None

    def list_news(self, topic_id: Optional[int] = None) -> List[News]:
        rows = [
            n for n in self.news.values() if topic_id is None or n.topic_id == topic_id
        ]
        return sorted(rows, key=lambda n: (n.created_at, n.id), reverse=True)

    def get_news(self, news_id: int) -> Optional[News]:
        return self.news.get(news_id)

    def create_news(self, title: str, content: str, topic_id: int) -> News:
        if topic_id not in self.topics:
            raise UnknownTopicError(topic_id)
        now = self._now()
        news = News(
            id=next(self._news_ids),
            title=title,
            content=content,
            topic_id=topic_id,
            created_at=now,
            updated_at=now,
        )
        self.news[news.id] = news
        return news

    def update_news(
        self, news_id: int, title: str, content: str, topic_id: int
    ) -> Optional[News]:
        if topic_id not in self.topics:
            raise UnknownTopicError(topic_id)
        if news_id not in self.news:
            return None
        news = self.news[news_id].model_copy(
            update={
                "title": title,
                "content": content,
                "topic_id": topic_id,
                "updated_at": self._now(),
            }
        )
        self.news[news_id] = news
        return news

    def delete_news(self, news_id: int) -> bool:
        return self.news.pop(news_id, None) is not None


@pytest.fixture
def memory_db():
    return InMemoryDatabase()


@pytest.fixture
def client(memory_db):
    """TestClient with the lifespan running against an in-memory database."""
    app = create_app(database=memory_db)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def topic(client):
    """A freshly created topic, as returned by the API."""
    response = client.post(
        "/api/topics",
        json={"name": "Science", "description": "News about science"},
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture(scope="session")
def pg_dsn():
    dsn = os.environ.get("TEST_DATABASE_URL")
    if not dsn:
        pytest.skip("TEST_DATABASE_URL is not set")
    return dsn


@pytest.fixture
def pg_database(pg_dsn):
    """Real PostgreSQL-backed Database with empty tables.

    Order matters for foreign keys: news is cleared before topics.
    """
    database = Database(pg_dsn, minconn=1, maxconn=4)
    database.open()
    database.create_tables()
    with database._cursor() as cursor:
        cursor.execute("DELETE FROM news")
        cursor.execute("DELETE FROM topics")

    yield database

    with database._cursor() as cursor:
        cursor.execute("DELETE FROM news")
        cursor.execute("DELETE FROM topics")
    database.close()
