# ontogen/adapters/api/routers/health.py
from typing import Dict

import structlog
from fastapi import APIRouter, Depends, status

from ontogen.adapters.api.dependencies import SessionRegistry, get_session_registry
from ontogen.shared.config import settings

logger = structlog.get_logger()

router = APIRouter(prefix="/health", tags=["System"])


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_probe(registry: SessionRegistry = Depends(get_session_registry)) -> Dict[str, object]:
    """
    Liveness Probe.
    Returns 200 OK if the service is operational.
    """
    return {"status": "ok", "service": settings.APP_NAME, "sessions": len(registry)}
