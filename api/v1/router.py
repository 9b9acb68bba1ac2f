"""Main router for API v1, combining all v1 endpoints."""

from fastapi import APIRouter

from . import news, topics


router = APIRouter(prefix="/api")

router.include_router(topics.router)
router.include_router(news.router)
