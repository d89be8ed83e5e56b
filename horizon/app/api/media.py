"""
Image analysis, image/video generation and Cloudinary upload endpoints.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from horizon.app.ai.service import AIService, get_ai_service
from horizon.app.brain.prompts import DEFAULT_IMAGE_ANALYSIS_PROMPT
from horizon.app.core.auth.identity import require_user_id
from horizon.app.core.config import get_settings
from horizon.app.core.db.relational import DBUserImage, get_relational_session
from horizon.app.media import cloudinary_client
from horizon.app.media.cloudinary_client import MediaConfigError
from horizon.app.media.freepik import (
    FreepikEngine,
    GenerationOptions,
    extract_media_url,
    get_freepik_engine,
)
from horizon.app.observability.logging import log_event
from horizon.app.services.chat_store import is_rate_limited


router = APIRouter(prefix="/api", tags=["media"])

ALLOWED_UPLOAD_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}


class AnalyzeImageRequest(BaseModel):
    image: Optional[str] = None
    prompt: Optional[str] = None


class GenerateImageRequest(BaseModel):
    prompt: Optional[str] = None
    image: Optional[str] = None
    aspectRatio: Optional[str] = None


class GenerateVideoRequest(BaseModel):
    prompt: Optional[str] = None
    model: Optional[str] = None
    options: Optional[dict[str, Any]] = None


class SaveImageRequest(BaseModel):
    imageUrl: Optional[str] = None
    publicId: Optional[str] = None


def rate_limited_user(user_id: str = Depends(require_user_id)) -> str:
    if is_rate_limited(user_id):
        raise HTTPException(status_code=429, detail="Rate limit exceeded")
    return user_id


def _save_user_image(user_id: str, image_url: str, public_id: Optional[str]):
    with get_relational_session() as db:
        db.add(DBUserImage(user_id=user_id, image_url=image_url, public_id=public_id))


def _persist_generated(url: str, resource_type: str) -> tuple[str, Optional[str]]:
    """Copy provider media into Cloudinary when it is configured. Returns (url, public_id)."""
    settings = get_settings()
    if not settings.cloudinary_configured:
        return url, None
    result = cloudinary_client.upload_media(url, f"{settings.cloudinary_folder}/generated", resource_type=resource_type)
    if result.get("status") == "success" and result.get("cloudinary_url"):
        return result["cloudinary_url"], result.get("public_id")
    log_event("generated_media_persist_failed", level=logging.WARNING, resource_type=resource_type, error=result.get("message"))
    return url, None


@router.post("/analyze-image")
def analyze_image(request: AnalyzeImageRequest, ai: AIService = Depends(get_ai_service)):
    if not request.image:
        raise HTTPException(status_code=400, detail="No image provided")
    try:
        text = ai.analyze_image(request.image, request.prompt or DEFAULT_IMAGE_ANALYSIS_PROMPT, "groq")
    except Exception as exc:
        log_event("analyze_image_failed", level=logging.ERROR, error=str(exc))
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to analyze image",
                "details": str(exc),
                "hint": "Check if the image format is valid (data:image/...;base64,...)",
            },
        )
    return {"response": text.strip()}


@router.post("/generate-image")
def generate_image(
    request: GenerateImageRequest,
    user_id: str = Depends(rate_limited_user),
    engine: FreepikEngine = Depends(get_freepik_engine),
):
    if not request.prompt:
        raise HTTPException(status_code=400, detail="Prompt is required")
    try:
        result = engine.generate_image(
            GenerationOptions(prompt=request.prompt, image=request.image, aspect_ratio=request.aspectRatio)
        )
    except Exception as exc:
        log_event("generate_image_failed", level=logging.ERROR, user_id=user_id, error=str(exc))
        return JSONResponse(status_code=500, content={"error": str(exc) or "An unexpected error occurred"})

    image_url = extract_media_url(result)
    if not image_url:
        return JSONResponse(status_code=500, content={"error": "No image URL returned from any provider"})

    image_url, public_id = _persist_generated(image_url, "image")
    try:
        _save_user_image(user_id, image_url, public_id or f"generated-{int(time.time() * 1000)}")
    except Exception as exc:
        log_event("user_image_save_failed", level=logging.WARNING, user_id=user_id, error=str(exc))

    log_event("image_generated", user_id=user_id)
    return {"success": True, "data": {"image": {"url": image_url}, "provider": "freepik"}}


@router.post("/generate-video")
def generate_video(
    request: GenerateVideoRequest,
    user_id: str = Depends(rate_limited_user),
    engine: FreepikEngine = Depends(get_freepik_engine),
):
    if not request.prompt:
        raise HTTPException(status_code=400, detail="Prompt is required")
    options = dict(request.options or {})
    try:
        result = engine.generate_video(
            GenerationOptions(
                prompt=request.prompt,
                model=request.model or "google-veo",
                image=options.pop("image", None),
                aspect_ratio=options.pop("aspectRatio", None),
                extra=options,
            )
        )
    except Exception as exc:
        log_event("generate_video_failed", level=logging.ERROR, user_id=user_id, error=str(exc))
        return JSONResponse(status_code=500, content={"error": str(exc) or "An unexpected error occurred"})

    video_url = extract_media_url(result)
    if not video_url:
        return JSONResponse(status_code=500, content={"error": "No video URL returned from provider"})
    video_url, _ = _persist_generated(video_url, "video")
    log_event("video_generated", user_id=user_id)
    return {"success": True, "data": {"video": {"url": video_url}, "provider": "freepik"}}


@router.post("/upload")
async def upload(
    file: Optional[UploadFile] = File(None),
    user_id: str = Depends(rate_limited_user),
):
    settings = get_settings()
    if not settings.cloudinary_configured:
        log_event("upload_config_missing", level=logging.ERROR)
        return JSONResponse(
            status_code=500,
            content={"error": "Server configuration error", "details": "Missing Cloudinary credentials"},
        )
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")

    too_large = HTTPException(
        status_code=413,
        detail=f"File too large. Max {settings.max_upload_bytes // (1024 * 1024)}MB",
    )
    if file.size is not None and file.size > settings.max_upload_bytes:
        raise too_large
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Empty file")
    if len(data) > settings.max_upload_bytes:
        raise too_large
    mime_type = (file.content_type or "").lower()
    if mime_type not in ALLOWED_UPLOAD_TYPES:
        log_event("upload_mime_rejected", level=logging.WARNING, user_id=user_id, mime_type=mime_type)
        raise HTTPException(status_code=415, detail="Unsupported file type")

    try:
        result = await asyncio.to_thread(cloudinary_client.upload_image, data)
    except MediaConfigError as exc:
        return JSONResponse(status_code=500, content={"error": "Server configuration error", "details": str(exc)})
    except Exception as exc:
        log_event("upload_failed", level=logging.ERROR, user_id=user_id, error=str(exc))
        return JSONResponse(status_code=500, content={"error": "Upload failed", "details": str(exc), "code": 500})

    _save_user_image(user_id, result["secure_url"], result.get("public_id"))
    log_event("upload_completed", user_id=user_id, bytes=len(data))
    return {"url": result["secure_url"]}


@router.post("/save-image")
def save_image(request: SaveImageRequest, user_id: str = Depends(rate_limited_user)):
    if not request.imageUrl or not request.publicId:
        raise HTTPException(status_code=400, detail="Missing image data")
    _save_user_image(user_id, request.imageUrl, request.publicId)
    return {"success": True}


@router.post("/sign-cloudinary")
def sign_cloudinary(user_id: str = Depends(require_user_id)):
    try:
        return cloudinary_client.sign_upload()
    except MediaConfigError:
        return JSONResponse(status_code=500, content={"error": "Server configuration error"})
