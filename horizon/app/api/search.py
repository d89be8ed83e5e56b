"""
Video search and trending topic endpoints.
"""

from __future__ import annotations

from typing import Optional

from cachetools import TTLCache
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from horizon.app.core.config import get_settings
from horizon.app.observability.logging import log_event
from horizon.app.search import serper


router = APIRouter(prefix="/api", tags=["search"])

_TRENDING_KEY = "topics"
trending_cache: TTLCache = TTLCache(maxsize=1, ttl=get_settings().trending_cache_seconds)


class VideoSearchRequest(BaseModel):
    query: Optional[str] = None
    num: Optional[int] = None


@router.post("/search/videos")
async def search_videos(request: VideoSearchRequest):
    if not request.query:
        raise HTTPException(status_code=400, detail="Query is required")
    videos = await serper.perform_video_search(request.query, request.num or 6)
    return [v.to_dict() for v in videos]


@router.get("/trending")
async def trending(refresh: bool = False):
    if not refresh and _TRENDING_KEY in trending_cache:
        return {"topics": trending_cache[_TRENDING_KEY], "cached": True}
    topics = await serper.fetch_trending_topics()
    trending_cache[_TRENDING_KEY] = topics
    log_event("trending_refreshed", count=len(topics), forced=refresh)
    return {"topics": topics, "cached": False}
