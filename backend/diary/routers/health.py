"""Service health."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from diary.database.db import ping
from diary.dependencies import SettingsDep

router = APIRouter()


@router.get("/health")
async def health_check(settings: SettingsDep):
    if await ping(settings.DATABASE_PATH):
        return {"status": "ok", "db": "connected"}
    return JSONResponse(status_code=503, content={"status": "degraded", "db": "unavailable"})
