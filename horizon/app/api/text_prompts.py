from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from horizon.app.services import prompt_catalog


router = APIRouter(prefix="/api", tags=["text-prompts"])


class PromptUsageRequest(BaseModel):
    promptId: Optional[str] = None


@router.get("/text-prompts")
def list_text_prompts(page: int = 1, limit: int = 10, category: Optional[str] = None):
    return prompt_catalog.list_prompts(page=page, limit=limit, category=category)


@router.post("/text-prompts")
def track_text_prompt(request: PromptUsageRequest):
    if not request.promptId:
        raise HTTPException(status_code=400, detail="promptId is required")
    if not prompt_catalog.track_usage(request.promptId):
        raise HTTPException(status_code=404, detail="Prompt not found")
    return {"success": True}
