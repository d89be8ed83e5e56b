"""
`@web` chat flow: fetch live results, synthesize an answer and persist it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from horizon.app.ai.service import AIService, get_ai_service
from horizon.app.ai.types import AIContent
from horizon.app.brain.json_cleaner import clean_ai_response
from horizon.app.observability.logging import log_event
from horizon.app.search import serper
from horizon.app.search.formatter import (
    format_search_results_for_ai,
    format_video_results_for_user,
    search_system_instructions,
)
from horizon.app.services.chat_store import save_message


@dataclass
class SearchHandlerResult:
    response: str
    has_results: bool


def no_results_message(query: str) -> str:
    return (
        f'I searched for "{query}" but couldn\'t find any relevant real-time information. '
        "I'll answer based on my general knowledge."
    )


async def handle_web_search(
    query: str,
    user_id: Optional[str],
    chat_id: str,
    history: list[AIContent],
    ai: Optional[AIService] = None,
) -> SearchHandlerResult:
    ai = ai or get_ai_service()
    results, x_results, videos = await asyncio.gather(
        serper.perform_web_search(query),
        serper.perform_web_search(f"{query} site:x.com OR site:twitter.com"),
        serper.perform_video_search(query, 6),
    )

    if not results and not x_results:
        message = no_results_message(query)
        save_message(chat_id, "assistant", message)
        log_event("web_search_empty", user_id=user_id, chat_id=chat_id)
        return SearchHandlerResult(response=message, has_results=False)

    context = format_search_results_for_ai(results)
    if x_results:
        context += "\n\nSOCIAL MEDIA CONTEXT (X/Twitter):\n" + "\n".join(f"- {r.snippet}" for r in x_results)
    prompt = search_system_instructions(query, context)

    try:
        reply = await asyncio.to_thread(ai.generate_text, prompt, "gemini", history)
    except Exception as exc:
        log_event("web_search_gemini_failed", level=logging.WARNING, chat_id=chat_id, error=str(exc))
        reply = await asyncio.to_thread(ai.generate_text, prompt, "groq", history)

    answer = clean_ai_response(reply).clean_text + format_video_results_for_user(videos)
    save_message(chat_id, "assistant", answer)
    log_event(
        "web_search_completed",
        user_id=user_id,
        chat_id=chat_id,
        web_results=len(results),
        social_results=len(x_results),
        videos=len(videos),
    )
    return SearchHandlerResult(response=answer, has_results=True)
