from __future__ import annotations

from fastapi import APIRouter, Depends

from horizon.app.core.auth.identity import require_user_id
from horizon.app.services.analytics_service import get_dashboard


router = APIRouter(prefix="/api", tags=["analytics"])


@router.get("/analytics")
def analytics(user_id: str = Depends(require_user_id)):
    return get_dashboard(user_id)
