"""
Extraction of embedded JSON action blocks from LLM replies.

The model is instructed to emit tool calls as JSON objects inside its text.
These must never leak to the user, so the first block that carries a known
action marker is cut out and parsed.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from horizon.app.observability.logging import log_event


ACTION_MARKERS = ('"action"', '"auto_memory"', '"freepik_prompt"', '"search_query"', '"backend"')


@dataclass
class CleanedResponse:
    clean_text: str
    extracted_json: Optional[Any] = None
    raw_json: Optional[str] = None


def _first_marker_index(text: str) -> int:
    best = -1
    for marker in ACTION_MARKERS:
        idx = text.find(marker)
        if idx != -1 and (best == -1 or idx < best):
            best = idx
    return best


def _matching_brace(text: str, start: int) -> int:
    balance = 0
    in_string = False
    for j in range(start, len(text)):
        char = text[j]
        if char == '"' and (j == 0 or text[j - 1] != "\\"):
            in_string = not in_string
        if not in_string:
            if char == "{":
                balance += 1
            elif char == "}":
                balance -= 1
        if balance == 0 and j > start:
            return j
    return -1


def clean_ai_response(text: str) -> CleanedResponse:
    if not text:
        return CleanedResponse(clean_text="")

    marker_index = _first_marker_index(text)
    if marker_index == -1:
        return CleanedResponse(clean_text=text.strip())

    start = text.rfind("{", 0, marker_index + 1)
    if start == -1:
        return CleanedResponse(clean_text=text.strip())

    end = _matching_brace(text, start)
    if end == -1:
        return CleanedResponse(clean_text=text.strip())

    raw_json = text[start:end + 1]
    extracted = None
    try:
        extracted = json.loads(raw_json)
    except json.JSONDecodeError as exc:
        log_event("json_action_parse_failed", level=logging.WARNING, error=str(exc))

    before = text[:start].strip()
    after = text[end + 1:].strip()

    # Drop markdown fence remnants around the removed block.
    if before.endswith("```json"):
        before = before[:-7].strip()
    elif before.endswith("```"):
        before = before[:-3].strip()
    if after.startswith("```"):
        after = after[3:].strip()

    clean_text = f"{before}\n{after}".strip()
    return CleanedResponse(clean_text=clean_text, extracted_json=extracted, raw_json=raw_json)
