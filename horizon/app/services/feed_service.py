"""
Community feed of shared generated images, stored in the document store.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import HTTPException
from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection

from horizon.app.observability.logging import log_event


def _serialize(doc: dict[str, Any]) -> dict[str, Any]:
    created = doc.get("createdAt")
    if isinstance(created, datetime):
        created = (created if created.tzinfo else created.replace(tzinfo=timezone.utc)).isoformat()
    return {
        "id": str(doc["_id"]),
        "userId": doc.get("userId"),
        "userName": doc.get("userName") or "Anonymous",
        "userAvatar": doc.get("userAvatar"),
        "imageUrl": doc.get("imageUrl"),
        "prompt": doc.get("prompt") or "",
        "likes": int(doc.get("likes") or 0),
        "likedBy": list(doc.get("likedBy") or []),
        "createdAt": created,
    }


def list_posts(collection: Collection, limit: int = 50, viewer_id: Optional[str] = None) -> list[dict[str, Any]]:
    cursor = collection.find({}).sort("createdAt", DESCENDING).limit(max(1, min(limit, 200)))
    posts = []
    for doc in cursor:
        item = _serialize(doc)
        item["hasLiked"] = bool(viewer_id and viewer_id in item["likedBy"])
        posts.append(item)
    return posts


def create_post(
    collection: Collection,
    user_id: str,
    image_url: str,
    prompt: str = "",
    user_name: Optional[str] = None,
    user_avatar: Optional[str] = None,
) -> dict[str, Any]:
    doc = {
        "_id": uuid.uuid4().hex,
        "userId": user_id,
        "userName": user_name or "Anonymous",
        "userAvatar": user_avatar,
        "imageUrl": image_url,
        "prompt": prompt,
        "likes": 0,
        "likedBy": [],
        "createdAt": datetime.now(timezone.utc),
    }
    collection.insert_one(doc)
    log_event("feed_post_created", user_id=user_id, post_id=doc["_id"])
    return _serialize(doc)


def delete_post(collection: Collection, post_id: str, user_id: str) -> None:
    doc = collection.find_one({"_id": post_id}, {"userId": 1})
    if doc is None:
        raise HTTPException(status_code=404, detail="Feed item not found")
    if doc.get("userId") != user_id:
        raise HTTPException(status_code=403, detail="Forbidden: You don't own this post")
    collection.delete_one({"_id": post_id})
    log_event("feed_post_deleted", user_id=user_id, post_id=post_id)


def toggle_like(collection: Collection, post_id: str, user_id: str) -> dict[str, Any]:
    """Like or unlike `post_id`. Returns the new liked state and like count.

    Both updates are conditional on `likedBy` membership; there is no separate read.
    """
    liked = collection.find_one_and_update(
        {"_id": post_id, "likedBy": {"$ne": user_id}},
        {"$inc": {"likes": 1}, "$addToSet": {"likedBy": user_id}},
        return_document=ReturnDocument.AFTER,
    )
    if liked is not None:
        return {"hasLiked": True, "likes": int(liked.get("likes") or 0)}

    unliked = collection.find_one_and_update(
        {"_id": post_id, "likedBy": user_id},
        {"$inc": {"likes": -1}, "$pull": {"likedBy": user_id}},
        return_document=ReturnDocument.AFTER,
    )
    if unliked is not None:
        return {"hasLiked": False, "likes": int(unliked.get("likes") or 0)}

    raise HTTPException(status_code=404, detail="Feed item not found")
