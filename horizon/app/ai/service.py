"""
Provider registry with cross-provider fallback for image analysis.
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from horizon.app.ai.providers.gemini_provider import GeminiProvider
from horizon.app.ai.providers.groq_provider import GroqProvider
from horizon.app.ai.types import AIContent, AIProvider, ProviderError
from horizon.app.observability.logging import log_event


_FALLBACKS = {"groq": "gemini", "gemini": "groq"}


class AIService:
    def __init__(self, providers: Optional[dict[str, AIProvider]] = None, default_provider: str = "gemini"):
        self.providers = providers or {"gemini": GeminiProvider(), "groq": GroqProvider()}
        self.default_provider = default_provider

    def get_provider(self, name: Optional[str] = None) -> AIProvider:
        key = name or self.default_provider
        provider = self.providers.get(key)
        if provider is None:
            raise ProviderError(key, "Unknown AI provider")
        return provider

    def generate_text(
        self,
        prompt: str,
        provider: Optional[str] = None,
        history: Optional[list[AIContent]] = None,
        context: Optional[str] = None,
        image: Optional[str] = None,
        system_instruction: Optional[str] = None,
    ) -> str:
        return self.get_provider(provider).generate_text(prompt, history, context, image, system_instruction)

    def stream_text(
        self,
        prompt: str,
        provider: Optional[str] = None,
        history: Optional[list[AIContent]] = None,
        context: Optional[str] = None,
        image: Optional[str] = None,
        system_instruction: Optional[str] = None,
    ) -> Iterator[str]:
        return self.get_provider(provider).stream_text(prompt, history, context, image, system_instruction)

    def analyze_image(self, image: str, prompt: str, provider: str = "groq") -> str:
        """Analyze with `provider`; on failure try the other one and re-raise the first error if both fail."""
        try:
            return self.get_provider(provider).analyze_image(image, prompt)
        except Exception as exc:
            log_event("image_analysis_failed", level=logging.WARNING, provider=provider, error=str(exc))
            fallback = _FALLBACKS.get(provider)
            if fallback is None:
                raise
            try:
                return self.get_provider(fallback).analyze_image(image, prompt)
            except Exception as fallback_exc:
                log_event(
                    "image_analysis_fallback_failed",
                    level=logging.ERROR,
                    provider=fallback,
                    error=str(fallback_exc),
                )
                raise exc


ai_service = AIService()


def get_ai_service() -> AIService:
    return ai_service
