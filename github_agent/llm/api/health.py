"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ...core.config import AgentSettings, get_settings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/")
async def health_check(settings: AgentSettings = Depends(get_settings)) -> dict[str, str]:
    return {
        "status": "ok",
        "intent_strategy": settings.intent_strategy,
        "timestamp": datetime.now(tz=timezone.utc).isoformat(),
    }
