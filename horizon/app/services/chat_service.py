"""
Chat turn orchestration.

1. Normalize history and prompt (image modification mode)
2. Rate limit, ensure chat, persist the user message
3. `@web` short-circuit to the search handler
4. Build context: intent persona, `@video`, summary, long-term memory, smart tools
5. Generate with Groq, fall back to Gemini
6. Extract and dispatch the embedded action block
7. Persist and return the assistant reply, refreshing the rolling summary
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Optional

from fastapi import HTTPException

from horizon.app.ai.service import AIService, get_ai_service
from horizon.app.ai.types import AIContent
from horizon.app.brain.intent import IntentType, detect_intent
from horizon.app.brain.json_cleaner import clean_ai_response
from horizon.app.brain.prompts import (
    SMART_TOOLS_INSTRUCTION,
    conversation_summary_prompt,
    image_modification_prompt,
    persona_block,
    summary_block,
    video_instruction,
)
from horizon.app.core.config import get_settings
from horizon.app.observability.logging import log_event
from horizon.app.search.formatter import format_shopping_results_for_user
from horizon.app.search.handler import handle_web_search
from horizon.app.search.serper import perform_shopping_search
from horizon.app.services import chat_store, memory_service


RATE_LIMITED_RESPONSE = "You are sending messages too quickly. Please wait a moment."
CHAT_FORBIDDEN = "Forbidden: You don't own this chat"
SUMMARY_MESSAGE_CHARS = 500
LIVE_SHOPPING_TRIGGERS = {"ProductRecommendation", "CategorySearch", "AvailabilityBestDeal", "OnlineStoreIntent"}
_WEB_RE = re.compile(r"@web", re.I)
_VIDEO_RE = re.compile(r"@video", re.I)


def history_from_client(messages: Optional[list[dict[str, Any]]], limit: int) -> list[AIContent]:
    if not messages:
        return []
    return [
        AIContent(role="user" if m.get("role") == "user" else "model", text=str(m.get("content") or ""))
        for m in messages[-limit:]
    ]


def stored_user_content(prompt: str, image: Optional[str]) -> str:
    if not image:
        return prompt
    if image.startswith("data:application/pdf"):
        return f"[PDF Attachment] \n{prompt}"
    return f"[Image Uploaded] \n{prompt}"


def open_chat(chat_id: str, user_id: Optional[str], title_hint: str) -> str:
    """ensure_chat for request handlers: a chat owned by someone else is a 403."""
    try:
        return chat_store.ensure_chat(chat_id, user_id, title_hint)
    except chat_store.ChatAccessError:
        log_event("chat_access_denied", level=logging.WARNING, user_id=user_id, chat_id=chat_id)
        raise HTTPException(status_code=403, detail=CHAT_FORBIDDEN)


async def build_context(prompt: str, chat_id: str, user_id: Optional[str]) -> tuple[str, Optional[str]]:
    """Return (context, replacement prompt or None)."""
    context = ""
    replacement = None

    intent = detect_intent(prompt)
    shopping_data = ""
    if intent.type == IntentType.SHOPPING and intent.sub_type in LIVE_SHOPPING_TRIGGERS:
        results = await perform_shopping_search(prompt)
        shopping_data = format_shopping_results_for_user(prompt, results)
    context += persona_block(intent, shopping_data)

    if prompt.strip().lower().startswith("@video"):
        video_prompt = _VIDEO_RE.sub("", prompt, count=1).strip()
        context += video_instruction(video_prompt)
        if video_prompt:
            replacement = f"Generate a video for: {video_prompt}"

    context += summary_block(chat_store.get_summary(chat_id))
    if user_id:
        context += memory_service.format_memories_for_context(memory_service.get_memories(user_id))
    context += SMART_TOOLS_INSTRUCTION
    return context, replacement


def _apply_memory_updates(user_id: Optional[str], auto_memory: Any):
    if not user_id or not isinstance(auto_memory, dict):
        return
    reason = auto_memory.get("reason")
    store = auto_memory.get("store")
    forget = auto_memory.get("forget")
    try:
        if isinstance(store, list):
            for item in store:
                if isinstance(item, dict) and item.get("key"):
                    memory_service.save_memory(user_id, str(item["key"]), str(item.get("value") or ""), reason)
        if isinstance(forget, list):
            for key in forget:
                if isinstance(key, str) and key:
                    memory_service.forget_memory(user_id, key)
    except Exception as exc:
        log_event("auto_memory_failed", level=logging.ERROR, user_id=user_id, error=str(exc))


async def refresh_summary(chat_id: str, user_id: Optional[str], ai: AIService):
    """Every `summary_every_messages` stored messages, fold the chat into a new summary row."""
    every = get_settings().summary_every_messages
    if not user_id or every <= 0:
        return
    count = chat_store.count_messages(chat_id)
    if count < every or count % every:
        return

    history = chat_store.get_chat_history(chat_id, user_id, limit=every)
    transcript = "\n".join(
        f"{'User' if item.role == 'user' else 'Assistant'}: {item.text[:SUMMARY_MESSAGE_CHARS]}" for item in history
    )
    prompt = conversation_summary_prompt(transcript, chat_store.get_summary(chat_id))
    try:
        summary = await asyncio.to_thread(ai.generate_text, prompt, "groq")
    except Exception as exc:
        log_event("summary_refresh_failed", level=logging.WARNING, chat_id=chat_id, error=str(exc))
        return
    if summary and summary.strip():
        chat_store.save_summary(chat_id, summary.strip())
        log_event("summary_refreshed", chat_id=chat_id, messages=count)


async def dispatch_action(
    action: dict[str, Any],
    final_text: str,
    user_id: Optional[str],
    chat_id: str,
    history: list[AIContent],
    ai: AIService,
) -> Optional[dict[str, Any]]:
    """Handle an extracted action block. Returns a response body, or None to fall through to plain text."""
    name = action.get("action")

    if name == "web_search" and action.get("search_query"):
        try:
            result = await handle_web_search(str(action["search_query"]), user_id, chat_id, history, ai=ai)
            return {"response": result.response}
        except Exception as exc:
            log_event("auto_search_failed", level=logging.ERROR, chat_id=chat_id, error=str(exc))

    backend = action.get("backend")
    if isinstance(backend, dict) and backend.get("action") == "generate_image":
        explanation = action.get("explanation") or final_text or "Generating image..."
        chat_store.save_message(chat_id, "assistant", explanation)
        return {
            "response": explanation,
            "backend": backend,
            "memory_update": action.get("memory_update"),
            "explanation": action.get("explanation"),
        }

    if name in {"generate_image", "generate_video"} and action.get("freepik_prompt"):
        media = "image" if name == "generate_image" else "video"
        explanation = final_text or f'Generating {media} for: "{action["freepik_prompt"]}"...'
        chat_store.save_message(chat_id, "assistant", explanation)
        return {"response": explanation, "action": name, "freepik_prompt": action["freepik_prompt"]}

    if name == "suggest_prompt" and action.get("promptId"):
        explanation = final_text or f"Recommended Template: **{action.get('title') or action['promptId']}**"
        chat_store.save_message(chat_id, "assistant", explanation)
        return {
            "response": explanation,
            "action": "suggest_prompt",
            "promptId": action["promptId"],
            "promptTitle": action.get("title"),
            "reason": action.get("reason"),
        }

    if action.get("auto_memory"):
        _apply_memory_updates(user_id, action["auto_memory"])
    return None


async def run_chat(
    payload: dict[str, Any],
    user_id: Optional[str],
    ai: Optional[AIService] = None,
) -> dict[str, Any]:
    """Run one chat turn. `payload` carries prompt, messages, chatId, imageContext and image."""
    ai = ai or get_ai_service()
    settings = get_settings()
    prompt = str(payload.get("prompt") or "")
    image = payload.get("image") or None
    chat_id = (payload.get("chatId") or "").strip() or chat_store.default_chat_id(user_id)

    history = history_from_client(payload.get("messages"), settings.chat_history_max_messages)

    final_prompt = prompt
    if payload.get("imageContext"):
        final_prompt = image_modification_prompt(prompt, payload["imageContext"])

    if chat_store.is_rate_limited(user_id):
        log_event("chat_rate_limited", user_id=user_id)
        return {"response": RATE_LIMITED_RESPONSE}

    open_chat(chat_id, user_id, prompt)
    if not history:
        history = chat_store.get_chat_history(chat_id, user_id, settings.chat_db_history_messages)
    chat_store.save_message(chat_id, "user", stored_user_content(prompt, image))

    if prompt and _WEB_RE.search(prompt):
        query = _WEB_RE.sub("", prompt, count=1).strip() or prompt.strip()
        result = await handle_web_search(query, user_id, chat_id, history, ai=ai)
        return {"response": result.response}

    context, replacement = await build_context(prompt, chat_id, user_id)
    if replacement:
        final_prompt = replacement

    try:
        raw = await asyncio.to_thread(ai.generate_text, final_prompt, "groq", history, context)
    except Exception as exc:
        log_event("chat_groq_failed", level=logging.WARNING, chat_id=chat_id, error=str(exc))
        raw = await asyncio.to_thread(ai.generate_text, final_prompt, "gemini", history, context, image)

    cleaned = clean_ai_response(raw)
    if isinstance(cleaned.extracted_json, dict):
        body = await dispatch_action(cleaned.extracted_json, cleaned.clean_text, user_id, chat_id, history, ai)
        if body is not None:
            return body

    chat_store.save_message(chat_id, "assistant", cleaned.clean_text)
    log_event("chat_completed", user_id=user_id, chat_id=chat_id, history=len(history))
    await refresh_summary(chat_id, user_id, ai)
    return {"response": cleaned.clean_text}
