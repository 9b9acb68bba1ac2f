"""Topic management endpoints for API v1."""

import logging
from typing import List

from fastapi import APIRouter, Depends, Path

from api.dependencies import get_database
from api.exceptions import BadRequestError, ConflictError, NotFoundError, storage_errors
from common.database import Database, TopicInUseError
from common.model import MessageResponse, Topic, TopicPayload
from common.utils import parse_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/topics", tags=["topics"])


def _require_name(payload: TopicPayload) -> None:
    if not payload.name:
        raise BadRequestError("Topic name is required")


@router.get("")
def get_topics(db: Database = Depends(get_database)) -> List[Topic]:
    """List all topics ordered by name."""
    with storage_errors("Failed to fetch topics"):
        return db.list_topics()


@router.get("/{topic_id}")
def get_topic(
    topic_id: str = Path(...), db: Database = Depends(get_database)
) -> Topic:
    parsed_id = parse_id(topic_id)
    if parsed_id is None:
        raise NotFoundError("Topic not found")

    with storage_errors("Failed to fetch topic"):
        topic = db.get_topic(parsed_id)
    if topic is None:
        raise NotFoundError("Topic not found")
    return topic


@router.post("", status_code=201)
def create_topic(
    payload: TopicPayload, db: Database = Depends(get_database)
) -> Topic:
    """Create a topic.

    Name uniqueness is left to the database constraint; a duplicate name is
    reported as a generic failure.
    """
    _require_name(payload)

    with storage_errors("Failed to create topic"):
        topic = db.create_topic(payload.name, payload.description)
    logger.info("Created topic %d (%s)", topic.id, topic.name)
    return topic


@router.put("/{topic_id}")
def update_topic(
    payload: TopicPayload,
    topic_id: str = Path(...),
    db: Database = Depends(get_database),
) -> Topic:
    _require_name(payload)

    parsed_id = parse_id(topic_id)
    if parsed_id is None:
        raise NotFoundError("Topic not found")

    with storage_errors("Failed to update topic"):
        topic = db.update_topic(parsed_id, payload.name, payload.description)
    if topic is None:
        raise NotFoundError("Topic not found")
    return topic


@router.delete("/{topic_id}")
def delete_topic(
    topic_id: str = Path(...), db: Database = Depends(get_database)
) -> MessageResponse:
    """Delete a topic.

    Refused with 409 while any news item still references the topic.
    """
    parsed_id = parse_id(topic_id)
    if parsed_id is None:
        raise NotFoundError("Topic not found")

    try:
        with storage_errors("Failed to delete topic"):
            deleted = db.delete_topic(parsed_id)
    except TopicInUseError as e:
        logger.info(
            "Refused to delete topic %d: %d news reference it", e.topic_id, e.news_count
        )
        raise ConflictError("Cannot delete topic with associated news articles")

    if not deleted:
        raise NotFoundError("Topic not found")
    logger.info("Deleted topic %d", parsed_id)
    return MessageResponse(message="Topic deleted successfully")
