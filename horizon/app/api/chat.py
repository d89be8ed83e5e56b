"""
Chat, chat history, feedback and memory endpoints.
"""

from __future__ import annotations

import traceback
from datetime import datetime, timezone
from typing import Any, Iterator, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel
from pymongo.collection import Collection

from horizon.app.ai.service import AIService, get_ai_service
from horizon.app.core.auth.identity import get_optional_user_id, require_user_id
from horizon.app.core.config import get_settings
from horizon.app.core.db.mongo import get_feedback_collection
from horizon.app.observability.logging import log_event
from horizon.app.services import chat_service, chat_store, memory_service


router = APIRouter(prefix="/api", tags=["chat"])


class ChatMessageIn(BaseModel):
    role: str
    content: str = ""


class ChatRequest(BaseModel):
    prompt: Optional[str] = None
    messages: Optional[List[ChatMessageIn]] = None
    chatId: Optional[str] = None
    imageContext: Optional[dict[str, Any]] = None
    image: Optional[str] = None


class FeedbackRequest(BaseModel):
    messageId: Optional[str] = None
    type: Optional[str] = None
    chatId: Optional[str] = None


@router.post("/chat")
async def chat(
    request: ChatRequest,
    user_id: Optional[str] = Depends(get_optional_user_id),
    ai: AIService = Depends(get_ai_service),
):
    if not request.prompt and not request.image:
        raise HTTPException(status_code=400, detail="Prompt or image is required")
    payload = request.model_dump()
    try:
        return await chat_service.run_chat(payload, user_id, ai=ai)
    except HTTPException:
        raise
    except Exception as exc:
        log_event("chat_failed", user_id=user_id, chat_id=request.chatId, error_class=type(exc).__name__, error=str(exc))
        body: dict[str, Any] = {
            "error": "Internal Server Error",
            "response": f"I encountered an issue: {exc}. Please try again later.",
        }
        if not get_settings().is_production:
            body["debug"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return JSONResponse(status_code=500, content=body)


@router.post("/chat/stream")
def chat_stream(
    request: ChatRequest,
    user_id: Optional[str] = Depends(get_optional_user_id),
    ai: AIService = Depends(get_ai_service),
):
    if not request.prompt:
        raise HTTPException(status_code=400, detail="Prompt is required")
    settings = get_settings()
    if chat_store.is_rate_limited(user_id):
        return StreamingResponse(iter([chat_service.RATE_LIMITED_RESPONSE]), media_type="text/plain")

    chat_id = chat_service.open_chat(request.chatId or "", user_id, request.prompt)
    history = chat_service.history_from_client(
        [m.model_dump() for m in request.messages or []],
        settings.chat_history_max_messages,
    ) or chat_store.get_chat_history(chat_id, user_id, settings.chat_db_history_messages)
    chat_store.save_message(chat_id, "user", request.prompt)

    def body() -> Iterator[str]:
        parts: list[str] = []
        try:
            for chunk in ai.stream_text(request.prompt, "groq", history):
                parts.append(chunk)
                yield chunk
        finally:
            reply = "".join(parts)
            if reply:
                chat_store.save_message(chat_id, "assistant", reply)
            log_event("chat_stream_completed", user_id=user_id, chat_id=chat_id, chars=len(reply))

    headers = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no", "X-Chat-ID": chat_id}
    return StreamingResponse(body(), media_type="text/plain; charset=utf-8", headers=headers)


@router.post("/chat/feedback")
def chat_feedback(
    request: FeedbackRequest,
    user_id: str = Depends(require_user_id),
    collection: Collection = Depends(get_feedback_collection),
):
    if not request.messageId or not request.type or not request.chatId:
        raise HTTPException(status_code=400, detail="Missing required fields")
    collection.insert_one(
        {
            "messageId": request.messageId,
            "chatId": request.chatId,
            "userId": user_id,
            "type": request.type,
            "createdAt": datetime.now(timezone.utc),
        }
    )
    log_event("chat_feedback_recorded", user_id=user_id, chat_id=request.chatId, feedback=request.type)
    return {"success": True}


@router.get("/chats")
def get_chats(user_id: str = Depends(require_user_id)):
    return {"chats": chat_store.list_chats(user_id)}


@router.get("/chats/{chat_id}")
def get_chat(chat_id: str, user_id: str = Depends(require_user_id)):
    chat = chat_store.get_chat(chat_id, user_id)
    if chat is None:
        raise HTTPException(status_code=404, detail="Chat not found")
    return chat


@router.delete("/chats/{chat_id}")
def delete_chat(chat_id: str, user_id: str = Depends(require_user_id)):
    if not chat_store.delete_chat(chat_id, user_id):
        raise HTTPException(status_code=404, detail="Chat not found")
    return {"status": "deleted", "chat_id": chat_id}


@router.get("/memories")
def get_memories(user_id: str = Depends(require_user_id)):
    return {"memories": [m.to_dict() for m in memory_service.get_memories(user_id)]}


@router.delete("/memories/{key}")
def forget_memory(key: str, user_id: str = Depends(require_user_id)):
    if not memory_service.forget_memory(user_id, key):
        raise HTTPException(status_code=404, detail="Memory not found")
    return {"status": "deleted", "key": key}
