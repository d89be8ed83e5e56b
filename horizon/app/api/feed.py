"""
Community feed endpoints.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from pymongo.collection import Collection

from horizon.app.core.auth.identity import get_optional_user_id, require_user_id
from horizon.app.core.db.mongo import get_feed_collection
from horizon.app.services import feed_service


router = APIRouter(prefix="/api/feed", tags=["feed"])


class FeedPostRequest(BaseModel):
    imageUrl: Optional[str] = None
    prompt: Optional[str] = None
    userName: Optional[str] = None
    userAvatar: Optional[str] = None


@router.get("")
def list_feed(
    limit: int = 50,
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    collection: Collection = Depends(get_feed_collection),
):
    return {"items": feed_service.list_posts(collection, limit=limit, viewer_id=viewer_id)}


@router.post("")
def create_feed_post(
    request: FeedPostRequest,
    user_id: str = Depends(require_user_id),
    collection: Collection = Depends(get_feed_collection),
):
    if not request.imageUrl:
        raise HTTPException(status_code=400, detail="imageUrl is required")
    item = feed_service.create_post(
        collection,
        user_id=user_id,
        image_url=request.imageUrl,
        prompt=request.prompt or "",
        user_name=request.userName,
        user_avatar=request.userAvatar,
    )
    return {"success": True, "item": item}


@router.delete("/{post_id}")
def delete_feed_post(
    post_id: str,
    user_id: str = Depends(require_user_id),
    collection: Collection = Depends(get_feed_collection),
):
    feed_service.delete_post(collection, post_id, user_id)
    return {"success": True}


@router.post("/{post_id}/like")
def like_feed_post(
    post_id: str,
    user_id: str = Depends(require_user_id),
    collection: Collection = Depends(get_feed_collection),
):
    result = feed_service.toggle_like(collection, post_id, user_id)
    return {"success": True, **result}
