"""
Gemini provider built on google-generativeai.

Rate limited or unavailable responses from the primary model are retried once
on the fallback model.
"""

from __future__ import annotations

from typing import Any, Iterator, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from horizon.app.ai.types import AIContent, AIProvider, ProviderError, merge_context, parse_image_data_url
from horizon.app.brain.prompts import DEFAULT_SYSTEM_INSTRUCTION
from horizon.app.core.config import get_settings
from horizon.app.observability.logging import log_event


_RETRYABLE = (google_exceptions.ResourceExhausted, google_exceptions.ServiceUnavailable)


class GeminiProvider(AIProvider):
    name = "gemini"

    def _configure(self):
        api_key = get_settings().gemini_api_key
        if not api_key:
            raise ProviderError(self.name, "GEMINI_API_KEY is not set in environment variables.")
        genai.configure(api_key=api_key)

    def _contents(
        self,
        prompt: str,
        history: Optional[list[AIContent]],
        context: Optional[str],
        image: Optional[str],
    ) -> list[dict[str, Any]]:
        contents = [
            {"role": "user" if item.role == "user" else "model", "parts": [item.text or ""]}
            for item in (history or [])
        ]
        parts: list[Any] = []
        if image:
            mime_type, data = parse_image_data_url(image, self.name)
            parts.append({"mime_type": mime_type, "data": data})
        parts.append(merge_context(prompt, context, label="User Prompt"))
        contents.append({"role": "user", "parts": parts})
        return contents

    def _model(self, model_name: str, system_instruction: Optional[str]):
        return genai.GenerativeModel(
            model_name,
            system_instruction=system_instruction or DEFAULT_SYSTEM_INSTRUCTION,
        )

    def generate_text(
        self,
        prompt: str,
        history: Optional[list[AIContent]] = None,
        context: Optional[str] = None,
        image: Optional[str] = None,
        system_instruction: Optional[str] = None,
    ) -> str:
        self._configure()
        settings = get_settings()
        contents = self._contents(prompt, history, context, image)
        try:
            response = self._model(settings.gemini_model, system_instruction).generate_content(contents)
        except _RETRYABLE as exc:
            log_event("gemini_fallback_model", model=settings.gemini_fallback_model, error=str(exc))
            response = self._model(settings.gemini_fallback_model, system_instruction).generate_content(contents)
        return response.text or ""

    def stream_text(
        self,
        prompt: str,
        history: Optional[list[AIContent]] = None,
        context: Optional[str] = None,
        image: Optional[str] = None,
        system_instruction: Optional[str] = None,
    ) -> Iterator[str]:
        self._configure()
        settings = get_settings()
        contents = self._contents(prompt, history, context, image)
        try:
            stream = self._model(settings.gemini_model, system_instruction).generate_content(contents, stream=True)
        except _RETRYABLE:
            stream = self._model(settings.gemini_fallback_model, system_instruction).generate_content(
                contents, stream=True
            )
        for chunk in stream:
            if chunk.text:
                yield chunk.text

    def analyze_image(self, image: str, prompt: str) -> str:
        return self.generate_text(prompt, history=[], image=image)
