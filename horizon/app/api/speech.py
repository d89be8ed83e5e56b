"""
Speech-to-text through the ElevenLabs transcription API.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

import httpx
from fastapi import APIRouter, File, UploadFile
from fastapi.responses import JSONResponse

from horizon.app.core.config import get_settings
from horizon.app.observability.logging import log_event


router = APIRouter(prefix="/api", tags=["speech"])

ELEVENLABS_STT_URL = "https://api.elevenlabs.io/v1/speech-to-text"
ELEVENLABS_MODEL_ID = "scribe_v1"


def elevenlabs_error_message(status_code: int, body: str) -> str:
    try:
        payload = json.loads(body)
    except ValueError:
        return body or f"Transcription failed with status {status_code}"
    if not isinstance(payload, dict):
        return f"ElevenLabs error ({status_code}): {body[:200]}"

    detail = payload.get("detail")
    if isinstance(detail, str):
        return detail
    if isinstance(detail, dict):
        if detail.get("message"):
            return str(detail["message"])
        if detail.get("status"):
            return f"{detail['status']}: {json.dumps(detail)}"
    if isinstance(payload.get("message"), str):
        return payload["message"]
    if payload.get("error"):
        error = payload["error"]
        return error if isinstance(error, str) else json.dumps(error)
    return f"ElevenLabs error ({status_code}): {body[:200]}"


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


@router.post("/speech-to-text")
async def speech_to_text(audio: Optional[UploadFile] = File(None)):
    settings = get_settings()
    if not settings.elevenlabs_api_key:
        log_event("speech_key_missing", level=logging.ERROR)
        return _error(500, "ElevenLabs API key not configured")
    if audio is None:
        return _error(400, "No audio file provided")

    data = await audio.read()
    if not data:
        return _error(400, "Audio file is empty")
    if len(data) > settings.max_audio_bytes:
        return _error(400, f"Audio file is too large (max {settings.max_audio_bytes // (1024 * 1024)}MB)")

    try:
        async with httpx.AsyncClient(timeout=120) as client:
            resp = await client.post(
                ELEVENLABS_STT_URL,
                headers={"xi-api-key": settings.elevenlabs_api_key},
                data={"model_id": ELEVENLABS_MODEL_ID},
                files={"file": ("recording.webm", data, audio.content_type or "audio/webm")},
            )
    except httpx.HTTPError as exc:
        log_event("speech_request_failed", level=logging.ERROR, error=str(exc))
        return _error(500, "Speech-to-text processing failed", details=str(exc))

    if resp.status_code >= 400:
        log_event("speech_provider_error", level=logging.ERROR, status_code=resp.status_code, body=resp.text[:300])
        return _error(
            resp.status_code,
            elevenlabs_error_message(resp.status_code, resp.text),
            details=resp.text,
            status=resp.status_code,
        )

    try:
        result = resp.json()
    except ValueError as exc:
        log_event("speech_invalid_response", level=logging.ERROR, error=str(exc), body=resp.text[:300])
        return _error(500, "Speech-to-text processing failed", details="Invalid response from speech provider")
    if not isinstance(result, dict):
        log_event("speech_invalid_response", level=logging.ERROR, body=resp.text[:300])
        return _error(500, "Speech-to-text processing failed", details="Invalid response from speech provider")
    return {"text": result.get("text") or "", "language": result.get("language_code") or "unknown"}
