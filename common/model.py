"""Data models for the Newsdesk application.

This module defines Pydantic models for database entities and request bodies:
- Topic: A named category that news items belong to
- News: A titled, content-bearing article attached to exactly one topic
- TopicPayload / NewsPayload: Client-supplied fields for create and update
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Topic(BaseModel):
    id: int = Field(..., description="Primary key (auto-generated)")
    name: str = Field(..., description="Unique topic name")
    description: Optional[str] = Field(None, description="Free-form description")
    created_at: datetime = Field(..., description="Timestamp when topic was created")
    updated_at: datetime = Field(
        ..., description="Timestamp when topic was last updated"
    )

    @classmethod
    def from_db_row(cls, row: dict) -> "Topic":
        return cls(**row)


class News(BaseModel):
    id: int = Field(..., description="Primary key (auto-generated)")
    title: str = Field(..., description="Title of the news article")
    content: str = Field(..., description="Body of the news article")
    topic_id: int = Field(..., description="Topic the article belongs to")
    created_at: datetime = Field(..., description="Timestamp when news was created")
    updated_at: datetime = Field(
        ..., description="Timestamp when news was last updated"
    )

    @classmethod
    def from_db_row(cls, row: dict) -> "News":
        return cls(**row)


class TopicPayload(BaseModel):
    """Fields accepted when creating or updating a topic.

    Missing and empty names are both rejected by the handlers, so ``name``
    defaults to an empty string instead of being required here. A missing or
    null description is stored as an empty string.
    """

    name: str = Field("", max_length=100, description="Topic name")
    description: str = Field("", description="Topic description")

    @field_validator("description", mode="before")
    @classmethod
    def _null_description(cls, v):
        return "" if v is None else v


class NewsPayload(BaseModel):
    title: str = Field("", max_length=200, description="News title")
    content: str = Field("", description="News content")
    topic_id: int = Field(0, description="Identifier of an existing topic")


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    time: str
