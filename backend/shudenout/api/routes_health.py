import os
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from shudenout.api import get_app_settings
from shudenout.core.config import Settings

router = APIRouter()

NO_STORE = {"Cache-Control": "no-store"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
def healthcheck() -> dict:
    return {"status": "ok"}


@router.get("/ping")
def ping(settings: Settings = Depends(get_app_settings)) -> dict:
    sha = os.getenv("GIT_COMMIT_SHA", "")[:7] or "local"
    return {
        "ok": True,
        "env": settings.environment,
        "sha": sha,
        "timestamp": _now(),
        "message": "Ping successful - API routes are working",
    }


@router.get("/diag")
def diag(settings: Settings = Depends(get_app_settings)) -> dict:
    return {
        "ok": True,
        "meta": {
            "env": settings.environment,
            "sha": os.getenv("GIT_COMMIT_SHA"),
            "region": os.getenv("DEPLOY_REGION"),
            "buildTime": os.getenv("BUILD_TIME"),
        },
        "hasAppId": bool(settings.rakuten_app_id),
        "safeMode": settings.runtime_safe_mode,
        "timestamp": _now(),
        "message": "Diagnostic endpoint working",
    }
