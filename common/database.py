"""PostgreSQL database connection and operations module."""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional

import psycopg2
from psycopg2.extras import RealDictCursor
from psycopg2.pool import ThreadedConnectionPool

from common.model import News, Topic

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the database or driver fails."""


class UnknownTopicError(Exception):
    def __init__(self, topic_id: int):
        self.topic_id = topic_id
        super().__init__(f"Topic {topic_id} does not exist")


class TopicInUseError(Exception):
    def __init__(self, topic_id: int, news_count: int):
        self.topic_id = topic_id
        self.news_count = news_count
        super().__init__(f"Topic {topic_id} is referenced by {news_count} news rows")


# Topics must be created before news because of the foreign key
SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS topics (
        id SERIAL PRIMARY KEY,
        name VARCHAR(100) NOT NULL UNIQUE,
        description TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS news (
        id SERIAL PRIMARY KEY,
        title VARCHAR(200) NOT NULL,
        content TEXT NOT NULL,
        topic_id INTEGER REFERENCES topics(id) ON DELETE CASCADE,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
)

TOPIC_COLUMNS = "id, name, description, created_at, updated_at"
NEWS_COLUMNS = "id, title, content, topic_id, created_at, updated_at"


class Database:
    """Pooled access to the topics and news tables.

    Every public operation borrows one connection and runs in a single
    transaction: committed when the operation returns, rolled back when it
    raises. Driver errors surface as StorageError and are never retried.

    ThreadedConnectionPool fails instead of waiting once maxconn connections
    are out, so borrowers queue on a semaphore sized to the pool.
    """

    def __init__(
        self,
        dsn: str,
        minconn: int = 1,
        maxconn: int = 10,
        connect_timeout: int = 10,
    ) -> None:
        self._dsn = dsn
        self._minconn = minconn
        self._maxconn = maxconn
        self._connect_timeout = connect_timeout
        self._pool: Optional[ThreadedConnectionPool] = None
        self._available = threading.BoundedSemaphore(maxconn)

    def open(self) -> None:
        if self._pool is not None:
            return

        try:
            self._pool = ThreadedConnectionPool(
                self._minconn,
                self._maxconn,
                self._dsn,
                connect_timeout=self._connect_timeout,
                keepalives=1,
                keepalives_idle=30,
                keepalives_interval=10,
                keepalives_count=5,
            )
        except psycopg2.Error as e:
            raise StorageError(f"Error opening database: {e}") from e

    def close(self) -> None:
        if self._pool is not None:
            self._pool.closeall()
            self._pool = None

    @contextmanager
    def _cursor(self) -> Iterator[RealDictCursor]:
        if self._pool is None:
            raise StorageError("Database pool is not open. Call open() first.")

        pool = self._pool
        self._available.acquire()
        try:
            conn = pool.getconn()
        except psycopg2.Error as e:
            self._available.release()
            raise StorageError(str(e)) from e

        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                yield cursor
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            raise StorageError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            pool.putconn(conn)
            self._available.release()

    def ping(self) -> None:
        with self._cursor() as cursor:
            cursor.execute("SELECT 1")
        logger.info("Database connection established")

    def create_tables(self) -> None:
        with self._cursor() as cursor:
            for ddl in SCHEMA:
                cursor.execute(ddl)
        logger.info("Database tables created successfully")

    # Topics

    def list_topics(self) -> List[Topic]:
        with self._cursor() as cursor:
            cursor.execute(f"SELECT {TOPIC_COLUMNS} FROM topics ORDER BY name")
            return [Topic.from_db_row(dict(row)) for row in cursor.fetchall()]

    def get_topic(self, topic_id: int) -> Optional[Topic]:
        with self._cursor() as cursor:
            cursor.execute(
                f"SELECT {TOPIC_COLUMNS} FROM topics WHERE id = %s", (topic_id,)
            )
            row = cursor.fetchone()
            return Topic.from_db_row(dict(row)) if row else None

    def create_topic(self, name: str, description: Optional[str]) -> Topic:
        """Insert a topic; a duplicate name violates the unique constraint."""
        dml = f"""
            INSERT INTO topics (name, description, created_at, updated_at)
            VALUES (%s, %s, NOW(), NOW())
            RETURNING {TOPIC_COLUMNS}
        """
        with self._cursor() as cursor:
            cursor.execute(dml, (name, description))
            return Topic.from_db_row(dict(cursor.fetchone()))

    def update_topic(
        self, topic_id: int, name: str, description: Optional[str]
    ) -> Optional[Topic]:
        dml = f"""
            UPDATE topics
            SET name = %s, description = %s, updated_at = NOW()
            WHERE id = %s
            RETURNING {TOPIC_COLUMNS}
        """
        with self._cursor() as cursor:
            cursor.execute(dml, (name, description, topic_id))
            row = cursor.fetchone()
            return Topic.from_db_row(dict(row)) if row else None

    def delete_topic(self, topic_id: int) -> bool:
        """Delete a topic that no news references.

        The topic row is locked before dependents are counted, so a concurrent
        news insert for the same topic waits until this transaction finishes.

        Returns:
            False if no topic has this id.

        Raises:
            TopicInUseError: If one or more news rows reference the topic.
        """
        with self._cursor() as cursor:
            cursor.execute("SELECT id FROM topics WHERE id = %s FOR UPDATE", (topic_id,))
            cursor.execute(
                "SELECT COUNT(*) AS count FROM news WHERE topic_id = %s", (topic_id,)
            )
            count = cursor.fetchone()["count"]
            if count > 0:
                raise TopicInUseError(topic_id, count)

            cursor.execute("DELETE FROM topics WHERE id = %s", (topic_id,))
            return cursor.rowcount > 0

    # News

    def list_news(self, topic_id: Optional[int] = None) -> List[News]:
        """List news newest first, optionally restricted to one topic.

        An unknown topic id yields an empty list; the topic itself is not
        looked up.
        """
        with self._cursor() as cursor:
            if topic_id is None:
                cursor.execute(
                    f"SELECT {NEWS_COLUMNS} FROM news ORDER BY created_at DESC"
                )
            else:
                cursor.execute(
                    f"SELECT {NEWS_COLUMNS} FROM news WHERE topic_id = %s "
                    "ORDER BY created_at DESC",
                    (topic_id,),
                )
            return [News.from_db_row(dict(row)) for row in cursor.fetchall()]

    def get_news(self, news_id: int) -> Optional[News]:
        with self._cursor() as cursor:
            cursor.execute(f"SELECT {NEWS_COLUMNS} FROM news WHERE id = %s", (news_id,))
            row = cursor.fetchone()
            return News.from_db_row(dict(row)) if row else None

    @staticmethod
    def _lock_topic(cursor: RealDictCursor, topic_id: int) -> None:
        # FOR SHARE blocks a concurrent delete_topic until the write commits
        cursor.execute("SELECT id FROM topics WHERE id = %s FOR SHARE", (topic_id,))
        if cursor.fetchone() is None:
            raise UnknownTopicError(topic_id)

    def create_news(self, title: str, content: str, topic_id: int) -> News:
        """Insert a news row for an existing topic.

        Raises:
            UnknownTopicError: If the topic does not exist.
        """
        dml = f"""
            INSERT INTO news (title, content, topic_id, created_at, updated_at)
            VALUES (%s, %s, %s, NOW(), NOW())
            RETURNING {NEWS_COLUMNS}
        """
        with self._cursor() as cursor:
            self._lock_topic(cursor, topic_id)
            cursor.execute(dml, (title, content, topic_id))
            return News.from_db_row(dict(cursor.fetchone()))

    def update_news(
        self, news_id: int, title: str, content: str, topic_id: int
    ) -> Optional[News]:
        """Update a news row, possibly moving it to another existing topic.

        Returns:
            The updated row, or None if no news has this id.

        Raises:
            UnknownTopicError: If the target topic does not exist.
        """
        dml = f"""
            UPDATE news
            SET title = %s, content = %s, topic_id = %s, updated_at = NOW()
            WHERE id = %s
            RETURNING {NEWS_COLUMNS}
        """
        with self._cursor() as cursor:
            self._lock_topic(cursor, topic_id)
            cursor.execute(dml, (title, content, topic_id, news_id))
            row = cursor.fetchone()
            return News.from_db_row(dict(row)) if row else None

    def delete_news(self, news_id: int) -> bool:
        with self._cursor() as cursor:
            cursor.execute("DELETE FROM news WHERE id = %s", (news_id,))
            return cursor.rowcount > 0
