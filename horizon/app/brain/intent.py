"""
Rule-based intent classification for pre-LLM persona selection.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from horizon.app.brain.shopping import detect_shopping_intent


class IntentType(str, Enum):
    SHOPPING = "Shopping"
    CREATIVE = "Creative"
    TECHNICAL = "Technical"
    RESEARCH = "Research"
    GENERAL = "General"


@dataclass(frozen=True)
class IntentResult:
    type: IntentType
    confidence: float
    description: str
    sub_type: Optional[str] = None


_TECHNICAL_PATTERNS = [
    r"(code|program|script|debug|error|function|class|api|database|sql|react|nextjs|python|javascript|"
    r"typescript|how to build|implementation)",
    r"(write a|create a|fix the|explain the) (code|script|function)",
]
_CREATIVE_PATTERNS = [
    r"(design|logo|brand|creative|story|poem|write a story|draw|paint|sketch|aesthetic|style)",
    r"(make a|create a|generate a) (logo|design|story|poem)",
]
_RESEARCH_PATTERNS = [
    r"(research|analyze|deep dive|latest news on|current state of|summary of|find papers|scholar)",
    r"(what is the|who is the|tell me more about|history of)",
]


def _matches(patterns: list[str], text: str) -> bool:
    return any(re.search(p, text, re.I) for p in patterns)


def detect_intent(prompt: str) -> IntentResult:
    lowered = (prompt or "").lower().strip()

    shopping = detect_shopping_intent(prompt or "")
    if shopping:
        return IntentResult(IntentType.SHOPPING, 0.9, shopping.description, sub_type=shopping.type)
    if _matches(_TECHNICAL_PATTERNS, lowered):
        return IntentResult(IntentType.TECHNICAL, 0.85, "User is asking for technical or coding assistance.")
    if _matches(_CREATIVE_PATTERNS, lowered):
        return IntentResult(IntentType.CREATIVE, 0.8, "User is expressing a creative or design-related need.")
    if _matches(_RESEARCH_PATTERNS, lowered):
        return IntentResult(IntentType.RESEARCH, 0.75, "User is seeking research or detailed analysis.")
    return IntentResult(IntentType.GENERAL, 0.5, "No specific intent detected. General conversation.")
