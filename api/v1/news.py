"""News management endpoints for API v1."""

import logging
from typing import List

from fastapi import APIRouter, Depends, Path

from api.dependencies import get_database
from api.exceptions import BadRequestError, NotFoundError, storage_errors
from common.database import Database, UnknownTopicError
from common.model import MessageResponse, News, NewsPayload
from common.utils import parse_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/news", tags=["news"])


def _require_fields(payload: NewsPayload) -> None:
    if not payload.title or not payload.content:
        raise BadRequestError("Title and content are required")


@router.get("")
def get_all_news(db: Database = Depends(get_database)) -> List[News]:
    """List all news, newest first."""
    with storage_errors("Failed to fetch news"):
        return db.list_news()


@router.get("/topic/{topic_id}")
def get_news_by_topic(
    topic_id: str = Path(...), db: Database = Depends(get_database)
) -> List[News]:
    """List news for one topic, newest first.

    The topic itself is not looked up: an unknown id gives an empty list.
    """
    parsed_id = parse_id(topic_id)
    if parsed_id is None:
        return []

    with storage_errors("Failed to fetch news by topic"):
        return db.list_news(topic_id=parsed_id)


@router.get("/{news_id}")
def get_news(news_id: str = Path(...), db: Database = Depends(get_database)) -> News:
    parsed_id = parse_id(news_id)
    if parsed_id is None:
        raise NotFoundError("News not found")

    with storage_errors("Failed to fetch news"):
        news = db.get_news(parsed_id)
    if news is None:
        raise NotFoundError("News not found")
    return news


@router.post("", status_code=201)
def create_news(payload: NewsPayload, db: Database = Depends(get_database)) -> News:
    _require_fields(payload)

    try:
        with storage_errors("Failed to create news"):
            news = db.create_news(payload.title, payload.content, payload.topic_id)
    except UnknownTopicError:
        raise BadRequestError("Topic does not exist")

    logger.info("Created news %d in topic %d", news.id, news.topic_id)
    return news


@router.put("/{news_id}")
def update_news(
    payload: NewsPayload,
    news_id: str = Path(...),
    db: Database = Depends(get_database),
) -> News:
    """Update a news item; the topic may change but must exist."""
    _require_fields(payload)

    parsed_id = parse_id(news_id)
    if parsed_id is None:
        raise NotFoundError("News not found")

    try:
        with storage_errors("Failed to update news"):
            news = db.update_news(
                parsed_id, payload.title, payload.content, payload.topic_id
            )
    except UnknownTopicError:
        raise BadRequestError("Topic does not exist")

    if news is None:
        raise NotFoundError("News not found")
    return news


@router.delete("/{news_id}")
def delete_news(
    news_id: str = Path(...), db: Database = Depends(get_database)
) -> MessageResponse:
    parsed_id = parse_id(news_id)
    if parsed_id is None:
        raise NotFoundError("News not found")

    with storage_errors("Failed to delete news"):
        deleted = db.delete_news(parsed_id)
    if not deleted:
        raise NotFoundError("News not found")
    return MessageResponse(message="News deleted successfully")
