"""
Cloudinary uploads and client-side upload signing.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

import cloudinary
import cloudinary.uploader
import cloudinary.utils

from horizon.app.core.config import Settings, get_settings
from horizon.app.observability.logging import log_event


UPLOAD_ATTEMPTS = 3


class MediaConfigError(RuntimeError):
    pass


def configure(settings: Optional[Settings] = None) -> Settings:
    settings = settings or get_settings()
    if not settings.cloudinary_configured:
        raise MediaConfigError("Missing Cloudinary credentials")
    cloudinary.config(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
        secure=True,
    )
    return settings


def upload_image(data: bytes) -> dict[str, Any]:
    """Upload raw image bytes into the feed folder. Returns Cloudinary's upload result."""
    settings = configure()
    return cloudinary.uploader.upload(
        data,
        folder=settings.cloudinary_folder,
        resource_type="image",
        timeout=600,
    )


def upload_media(
    file: Any,
    folder: str,
    resource_type: str = "auto",
    sleep: Callable[[float], None] = time.sleep,
) -> dict[str, Any]:
    """Upload a path, URL or data URI with retries. Never raises; reports status instead."""
    try:
        configure()
    except MediaConfigError as exc:
        return {"status": "error", "message": str(exc)}
    if not folder or not folder.strip():
        return {"status": "error", "message": "Folder path is required. Uploads cannot go to the root folder."}

    last_error: Optional[Exception] = None
    for attempt in range(1, UPLOAD_ATTEMPTS + 1):
        try:
            result = cloudinary.uploader.upload(
                file,
                folder=folder,
                resource_type=resource_type,
                fetch_format="auto",
                quality="auto",
                timeout=300 if resource_type == "video" else 120,
                use_filename=True,
                unique_filename=True,
            )
            return {
                "status": "success",
                "cloudinary_url": result.get("secure_url"),
                "public_id": result.get("public_id"),
            }
        except Exception as exc:
            last_error = exc
            log_event("cloudinary_upload_attempt_failed", level=logging.WARNING, attempt=attempt, error=str(exc))
            if attempt < UPLOAD_ATTEMPTS:
                sleep(1.0)

    return {"status": "error", "message": str(last_error) or "Cloudinary upload failed"}


def sign_upload(folder: Optional[str] = None, timestamp: Optional[int] = None) -> dict[str, Any]:
    settings = configure()
    folder = folder or settings.cloudinary_folder
    timestamp = timestamp or int(time.time())
    signature = cloudinary.utils.api_sign_request(
        {"timestamp": timestamp, "folder": folder},
        settings.cloudinary_api_secret,
    )
    return {
        "signature": signature,
        "timestamp": timestamp,
        "cloudName": settings.cloudinary_cloud_name,
        "apiKey": settings.cloudinary_api_key,
        "folder": folder,
    }
