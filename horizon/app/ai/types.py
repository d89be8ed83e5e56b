"""
Shared types for AI text/vision providers.
"""

from __future__ import annotations

import base64
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional


class ProviderError(RuntimeError):
    """Raised when an AI provider is misconfigured or its call fails."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


@dataclass
class AIContent:
    role: str  # "user" or "model"
    text: str = ""
    image: Optional[str] = None


_DATA_URL_RE = re.compile(r"^data:(image/[^;]+);base64,")


def parse_image_data_url(image: str, provider: str) -> tuple[str, bytes]:
    """Split a `data:image/...;base64,...` URL into (mime type, raw bytes)."""
    if not image.startswith("data:") or "base64," not in image:
        raise ProviderError(provider, "Invalid image format. Expected data URL with base64 encoding.")
    encoded = image.split(",", 1)[1]
    if not encoded:
        raise ProviderError(provider, "Failed to extract base64 data from image.")
    match = _DATA_URL_RE.match(image)
    mime_type = match.group(1) if match else "image/jpeg"
    try:
        return mime_type, base64.b64decode(encoded)
    except (ValueError, TypeError) as exc:
        raise ProviderError(provider, f"Image is not valid base64: {exc}") from exc


def merge_context(prompt: str, context: Optional[str], label: str = "User Query") -> str:
    if not context:
        return prompt
    return f"{context}\n\n{label}: {prompt}"


class AIProvider(ABC):
    name: str = ""

    @abstractmethod
    def generate_text(
        self,
        prompt: str,
        history: Optional[list[AIContent]] = None,
        context: Optional[str] = None,
        image: Optional[str] = None,
        system_instruction: Optional[str] = None,
    ) -> str:
        raise NotImplementedError

    @abstractmethod
    def stream_text(
        self,
        prompt: str,
        history: Optional[list[AIContent]] = None,
        context: Optional[str] = None,
        image: Optional[str] = None,
        system_instruction: Optional[str] = None,
    ) -> Iterator[str]:
        raise NotImplementedError

    @abstractmethod
    def analyze_image(self, image: str, prompt: str) -> str:
        raise NotImplementedError
