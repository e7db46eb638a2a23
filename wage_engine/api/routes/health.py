from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from wage_engine.api.deps import get_container
from wage_engine.container import Container

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", summary="Liveness and database probe")
def healthcheck(container: Container = Depends(get_container)):
    if not container.database.is_open or not container.database.ping():
        return JSONResponse(status_code=503, content={"status": "degraded", "database": "unavailable"})
    return {"status": "ok", "database": "ok"}
