"""
Groq LLM provider.

Text generation uses the chat completions API with the conversation history
mapped to user/assistant roles. Vision requests use a dedicated key when
IMAGE_GEN_GROQ_API_KEY is set.
"""

from __future__ import annotations

from typing import Iterator, Optional

from groq import Groq

from horizon.app.ai.types import AIContent, AIProvider, ProviderError, merge_context
from horizon.app.core.config import get_settings


class GroqProvider(AIProvider):
    name = "groq"

    def __init__(self):
        self._client: Optional[Groq] = None

    def _get_client(self) -> Groq:
        api_key = get_settings().groq_api_key
        if not api_key:
            raise ProviderError(self.name, "GROQ_API_KEY not found in environment variables")
        if self._client is None:
            self._client = Groq(api_key=api_key)
        return self._client

    def _messages(
        self,
        prompt: str,
        history: Optional[list[AIContent]],
        context: Optional[str],
        system_instruction: Optional[str] = None,
    ) -> list[dict]:
        messages = [{"role": "system", "content": system_instruction}] if system_instruction else []
        messages.extend(
            {"role": "assistant" if item.role == "model" else "user", "content": item.text or ""}
            for item in (history or [])
        )
        messages.append({"role": "user", "content": merge_context(prompt, context)})
        return messages

    def generate_text(
        self,
        prompt: str,
        history: Optional[list[AIContent]] = None,
        context: Optional[str] = None,
        image: Optional[str] = None,
        system_instruction: Optional[str] = None,
    ) -> str:
        client = self._get_client()
        response = client.chat.completions.create(
            model=get_settings().groq_model,
            messages=self._messages(prompt, history, context, system_instruction),
            temperature=0.7,
            max_tokens=1024,
        )
        if not response or not response.choices:
            raise ProviderError(self.name, "Empty response from Groq")
        return (response.choices[0].message.content or "").strip()

    def stream_text(
        self,
        prompt: str,
        history: Optional[list[AIContent]] = None,
        context: Optional[str] = None,
        image: Optional[str] = None,
        system_instruction: Optional[str] = None,
    ) -> Iterator[str]:
        client = self._get_client()
        stream = client.chat.completions.create(
            model=get_settings().groq_model,
            messages=self._messages(prompt, history, context, system_instruction),
            temperature=0.7,
            max_tokens=2048,
            stream=True,
        )
        for chunk in stream:
            if not chunk.choices:
                continue
            content = chunk.choices[0].delta.content
            if content:
                yield content

    def analyze_image(self, image: str, prompt: str) -> str:
        settings = get_settings()
        if not settings.groq_vision_api_key:
            raise ProviderError(self.name, "Groq API key missing")
        client = Groq(api_key=settings.groq_vision_api_key)
        response = client.chat.completions.create(
            model=settings.groq_vision_model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {"type": "image_url", "image_url": {"url": image}},
                    ],
                }
            ],
            temperature=0.5,
            max_tokens=1024,
        )
        if not response or not response.choices:
            raise ProviderError(self.name, "Empty response from Groq vision model")
        return response.choices[0].message.content or ""
