"""
Freepik image and video generation engine.

Models are tried in priority order. Asynchronous Freepik tasks are polled
until they complete, fail, or stall. Failed image generations fall back to
Bytez (Google Imagen) when a Bytez key is configured.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

import httpx
from cachetools import TTLCache

from horizon.app.core.config import get_settings
from horizon.app.observability.logging import log_event


FREEPIK_BASE_URL = "https://api.freepik.com/v1/ai"
BYTEZ_MODEL_ID = "google/imagen-4.0-fast-generate-001"
POLL_INTERVAL_SECONDS = 2.0
POLL_REQUEST_TIMEOUT_SECONDS = 10.0
MAX_CREATED_POLLS = 15
EARLY_NOT_FOUND_POLLS = 5
TRANSIENT_ERROR_POLLS = 3
FREE_TRIAL_MESSAGE = "Daily free trial limit reached. Please upgrade your plan or try again tomorrow."

ASPECT_RATIOS = {
    "1:1": "square_1_1",
    "4:3": "classic_4_3",
    "3:4": "traditional_3_4",
    "16:9": "widescreen_16_9",
    "9:16": "social_story_9_16",
    "3:2": "standard_3_2",
    "2:3": "portrait_2_3",
    "5:4": "social_5_4",
    "4:5": "social_post_4_5",
}


class MediaGenerationError(RuntimeError):
    pass


@dataclass(frozen=True)
class ModelConfig:
    id: str
    name: str
    api_id: str
    type: str  # "image" or "video"
    priority: int = 99
    time_slot: Optional[tuple[int, int]] = None  # [start, end) hours

    def in_time_slot(self, hour: int) -> bool:
        if self.time_slot is None:
            return False
        start, end = self.time_slot
        return start <= hour < end


IMAGE_MODELS = [
    ModelConfig(id="mystic", name="Freepik Mystic", api_id="mystic", type="image", priority=1),
]

VIDEO_MODELS = [
    ModelConfig(id="google-veo", name="Google Veo", api_id="google-veo", type="video", priority=1),
    ModelConfig(id="kling-v2", name="Kling v2", api_id="kling-v2", type="video", priority=2),
]


@dataclass
class GenerationOptions:
    prompt: str
    image: Optional[str] = None
    model: Optional[str] = None
    aspect_ratio: Optional[str] = None
    urgent: bool = True
    extra: dict[str, Any] = field(default_factory=dict)

    def cache_key(self, kind: str) -> str:
        payload = {
            "prompt": self.prompt,
            "image": self.image,
            "model": self.model,
            "aspect_ratio": self.aspect_ratio,
            "extra": self.extra,
        }
        return f"{kind}:{json.dumps(payload, sort_keys=True, default=str)}"


class RateLimitTracker:
    """Remembers the last `x-ratelimit-*` headers seen per model."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._state: dict[str, tuple[int, int, float]] = {}
        self._lock = threading.Lock()

    def update(self, api_id: str, limit: int, remaining: int, reset_seconds: int):
        if limit <= 0:
            return
        with self._lock:
            self._state[api_id] = (limit, remaining, self._clock() + max(reset_seconds, 0))

    def can_make_request(self, api_id: str, min_remaining: int = 1) -> bool:
        with self._lock:
            state = self._state.get(api_id)
            if state is None:
                return True
            _, remaining, reset_at = state
            if self._clock() >= reset_at:
                self._state.pop(api_id, None)
                return True
            return remaining >= min_remaining


def _header_int(headers: httpx.Headers, name: str) -> int:
    try:
        return int(headers.get(name) or 0)
    except ValueError:
        return 0


def _error_message(resp: httpx.Response) -> Optional[str]:
    try:
        payload = resp.json()
    except ValueError:
        return None
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return None


def _json_body(resp: httpx.Response, source: str) -> dict[str, Any]:
    try:
        payload = resp.json()
    except ValueError as exc:
        raise MediaGenerationError(f"{source} returned an invalid response (Status: {resp.status_code})") from exc
    if not isinstance(payload, dict):
        raise MediaGenerationError(f"{source} returned an invalid response (Status: {resp.status_code})")
    return payload


def extract_media_url(result: dict[str, Any]) -> Optional[str]:
    """First generated item as a URL (string entry, `url` field, or base64 PNG)."""
    generated = ((result or {}).get("data") or {}).get("generated") or []
    if not generated:
        return None
    item = generated[0]
    if isinstance(item, str):
        return item
    if isinstance(item, dict):
        if item.get("base64"):
            return f"data:image/png;base64,{item['base64']}"
        return item.get("url")
    return None


class FreepikEngine:
    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
        rate_limiter: Optional[RateLimitTracker] = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self._client = client
        self._sleep = sleep
        self._now = now
        self.rate_limiter = rate_limiter or RateLimitTracker()
        self._caches = {
            "image": TTLCache(maxsize=256, ttl=24 * 3600),
            "video": TTLCache(maxsize=128, ttl=48 * 3600),
        }
        # Sync routes share this engine across Starlette's threadpool.
        self._lock = threading.Lock()

    @property
    def client(self) -> httpx.Client:
        with self._lock:
            if self._client is None:
                self._client = httpx.Client(timeout=60.0)
            return self._client

    def _cached(self, kind: str, key: str) -> Optional[dict[str, Any]]:
        with self._lock:
            return self._caches[kind].get(key)

    def _remember(self, kind: str, key: str, result: dict[str, Any]):
        with self._lock:
            self._caches[kind][key] = result

    def _api_key(self) -> str:
        api_key = get_settings().freepik_api_key
        if not api_key:
            raise MediaGenerationError("FREEPIK_API_KEY is missing")
        return api_key

    def prioritized_models(self, kind: str) -> list[ModelConfig]:
        models = IMAGE_MODELS if kind == "image" else VIDEO_MODELS
        hour = self._now().hour
        return sorted(models, key=lambda m: (not m.in_time_slot(hour), m.priority))

    def generate_image(self, options: GenerationOptions) -> dict[str, Any]:
        try:
            return self._handle_generation("image", options)
        except Exception as exc:
            log_event("freepik_image_failed", level=logging.ERROR, error=str(exc))
            if get_settings().bytez_api_key:
                try:
                    return self._generate_with_bytez(options.prompt)
                except MediaGenerationError as bytez_exc:
                    log_event("bytez_fallback_failed", level=logging.ERROR, error=str(bytez_exc))
            raise

    def generate_video(self, options: GenerationOptions) -> dict[str, Any]:
        target = options.model
        if not target:
            models = self.prioritized_models("video")
            target = models[0].id if models else None

        if target == "google-veo":
            return self._handle_generation("video", options)

        base = self.generate_image(
            GenerationOptions(prompt=options.prompt, aspect_ratio="16:9", urgent=True, model="mystic")
        )
        image_url = extract_media_url(base)
        if not image_url:
            log_event("video_base_image_missing", level=logging.ERROR, response=json.dumps(base, default=str)[:500])
            raise MediaGenerationError("Failed to generate base image for video")
        return self._handle_generation(
            "video",
            GenerationOptions(
                prompt=options.prompt,
                image=image_url,
                model=options.model,
                aspect_ratio=options.aspect_ratio,
                urgent=options.urgent,
                extra=options.extra,
            ),
        )

    def _select_models(self, kind: str, options: GenerationOptions) -> list[ModelConfig]:
        models = self.prioritized_models(kind)
        if options.model:
            selected = [m for m in models if m.id == options.model]
            if selected:
                return selected
            log_event("freepik_model_unknown", level=logging.WARNING, model=options.model)
            return models
        if kind == "video" and not options.image:
            return [m for m in models if m.id == "google-veo"]
        return models

    def _handle_generation(self, kind: str, options: GenerationOptions) -> dict[str, Any]:
        key = options.cache_key(kind)
        cached = self._cached(kind, key)
        if cached is not None:
            log_event("freepik_cache_hit", kind=kind)
            return cached

        last_error: Optional[Exception] = None
        for model in self._select_models(kind, options):
            if not self.rate_limiter.can_make_request(model.api_id, 5 if kind == "image" else 2):
                log_event("freepik_model_skipped", level=logging.WARNING, model=model.id, reason="rate_limit")
                continue
            try:
                result = self._call_api(model, options)
            except (MediaGenerationError, httpx.HTTPError) as exc:
                log_event("freepik_model_failed", level=logging.ERROR, model=model.id, error=str(exc))
                last_error = exc
                continue
            self._remember(kind, key, result)
            return result

        if last_error is not None:
            raise last_error
        raise MediaGenerationError(f"All {kind} models failed or are exhausted.")

    def _call_api(self, model: ModelConfig, options: GenerationOptions) -> dict[str, Any]:
        body: dict[str, Any] = {"prompt": options.prompt}
        if model.type == "image":
            endpoint = f"{FREEPIK_BASE_URL}/mystic"
            if options.aspect_ratio:
                body["aspect_ratio"] = ASPECT_RATIOS.get(options.aspect_ratio, "square_1_1")
        elif model.id == "google-veo":
            endpoint = f"{FREEPIK_BASE_URL}/text-to-video"
        else:
            endpoint = f"{FREEPIK_BASE_URL}/image-to-video/{model.api_id}"
            if not options.image:
                raise MediaGenerationError("Image URL is required for image-to-video generation")
            body["image"] = options.image

        resp = self.client.post(
            endpoint,
            headers={
                "Content-Type": "application/json",
                "x-freepik-api-key": self._api_key(),
                "Accept": "application/json",
            },
            json=body,
        )
        self.rate_limiter.update(
            model.api_id,
            _header_int(resp.headers, "x-ratelimit-limit"),
            _header_int(resp.headers, "x-ratelimit-remaining"),
            _header_int(resp.headers, "x-ratelimit-reset"),
        )

        if resp.status_code >= 400:
            message = _error_message(resp) or f"API Error {resp.status_code}: {resp.text}"
            if "limit of the free trial usage" in message:
                message = FREE_TRIAL_MESSAGE
            raise MediaGenerationError(message)

        data = _json_body(resp, "Freepik")
        task_id = (data.get("data") or {}).get("task_id")
        if task_id:
            return self._poll_task(task_id, model)
        return data

    def _task_url(self, task_id: str, model: ModelConfig) -> str:
        if model.type == "image":
            return f"{FREEPIK_BASE_URL}/mystic/{task_id}"
        if model.id == "google-veo":
            return f"{FREEPIK_BASE_URL}/text-to-video/tasks/{task_id}"
        return f"{FREEPIK_BASE_URL}/image-to-video/tasks/{task_id}"

    def _poll_task(self, task_id: str, model: ModelConfig) -> dict[str, Any]:
        max_attempts = 60 if model.type == "image" else 90
        url = self._task_url(task_id, model)
        created_count = 0

        for attempt in range(max_attempts):
            self._sleep(POLL_INTERVAL_SECONDS)
            try:
                resp = self.client.get(
                    url,
                    headers={"x-freepik-api-key": self._api_key()},
                    timeout=POLL_REQUEST_TIMEOUT_SECONDS,
                )
            except httpx.TransportError as exc:
                log_event("freepik_poll_transport_error", level=logging.WARNING, attempt=attempt + 1, error=str(exc))
                if attempt < TRANSIENT_ERROR_POLLS:
                    continue
                raise MediaGenerationError(f"Polling failed: {exc}") from exc

            if resp.status_code >= 400:
                if resp.status_code == 404 and attempt < EARLY_NOT_FOUND_POLLS:
                    continue
                message = _error_message(resp) or f"API returned {resp.status_code}"
                raise MediaGenerationError(f"{message} (Status: {resp.status_code})")

            data = _json_body(resp, "Freepik")
            task = data.get("data") or {}
            status = task.get("status")
            if status == "COMPLETED":
                log_event("freepik_task_completed", model=model.id, task_id=task_id, attempts=attempt + 1)
                return data
            if status == "FAILED":
                reason = task.get("error") or task.get("message") or "Unknown error occurred"
                raise MediaGenerationError(f"Generation failed: {reason}")
            if status == "CREATED":
                created_count += 1
                if created_count >= MAX_CREATED_POLLS:
                    raise MediaGenerationError(
                        "Task stuck in queue. The service may be overloaded. Please try again in a few moments."
                    )
            else:
                created_count = 0

        minutes = round(max_attempts * POLL_INTERVAL_SECONDS / 60)
        raise MediaGenerationError(
            f"Generation timed out after {minutes} minutes. Please try with a simpler prompt or try again later."
        )

    def _generate_with_bytez(self, prompt: str) -> dict[str, Any]:
        try:
            resp = self.client.post(
                f"https://api.bytez.com/model/{BYTEZ_MODEL_ID}",
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {get_settings().bytez_api_key}",
                },
                json={"text": prompt},
            )
        except httpx.HTTPError as exc:
            raise MediaGenerationError(f"Bytez fallback failed: {exc}") from exc
        if resp.status_code >= 400:
            raise MediaGenerationError(f"Bytez fallback failed: Bytez API Error {resp.status_code}: {resp.text}")

        data = _json_body(resp, "Bytez fallback")
        output = data.get("output")
        image_url = None
        if isinstance(output, str) and output:
            image_url = output
        elif isinstance(output, list) and output:
            image_url = output[0]
        elif data.get("generated_images"):
            image_url = data["generated_images"][0]

        if not image_url:
            log_event("bytez_url_missing", level=logging.WARNING)
            return {"data": {"generated": [data]}}
        return {"data": {"generated": [{"url": image_url}]}}


freepik_engine = FreepikEngine()


def get_freepik_engine() -> FreepikEngine:
    return freepik_engine
