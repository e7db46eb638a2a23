from __future__ import annotations

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from wage_engine.api.routes import health
from wage_engine.container import Container, build_container
from wage_engine.core.config import Settings, get_settings
from wage_engine.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DuplicateConstraintError,
    NotFoundError,
    StorageUnavailable,
    ValidationError,
    WageEngineError,
)
from wage_engine.core.logging import bind_request_context, configure_logging, get_logger
from wage_engine.core.monitoring import configure_error_monitoring
from wage_engine.core.observability import configure_observability
from wage_engine.domains.approvals.router import router as approvals_router
from wage_engine.domains.auth.router import router as auth_router
from wage_engine.domains.employees.router import router as employees_router
from wage_engine.domains.leave.router import router as leave_router

logger = get_logger(__name__)

STATUS_BY_ERROR = (
    (ValidationError, 422),
    (NotFoundError, 404),
    (ConflictError, 409),
    (DuplicateConstraintError, 409),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (StorageUnavailable, 503),
)


def _status_for(exc: WageEngineError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def handle_engine_error(request: Request, exc: WageEngineError) -> JSONResponse:
    status_code = _status_for(exc)
    log = logger.warning if status_code < 500 else logger.error
    log("request_failed", path=request.url.path, code=exc.code, status=status_code)
    body = {"detail": str(exc), "code": exc.code, "retryable": exc.retryable}
    field = getattr(exc, "field", None)
    if field:
        body["field"] = field
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def create_app(settings: Settings | None = None, container: Container | None = None) -> FastAPI:
    settings = settings or (container.settings if container else get_settings())
    configure_logging(settings.log_level)
    configure_observability(settings)
    configure_error_monitoring(settings)

    container = container or build_container(settings)

    app = FastAPI(title=settings.app_name)
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.cors_origins] or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        bind_request_context(request_id=request.headers.get("X-Request-ID") or str(uuid4()))
        return await call_next(request)

    app.add_exception_handler(WageEngineError, handle_engine_error)

    app.include_router(health.router)
    app.include_router(auth_router)
    app.include_router(approvals_router)
    app.include_router(leave_router)
    app.include_router(employees_router)

    @app.on_event("startup")
    def startup_event() -> None:
        container.database.open()
        logger.info("startup_complete", env=settings.env)

    @app.on_event("shutdown")
    def shutdown_event() -> None:
        container.database.close()

    @app.get("/")
    def root() -> dict[str, str]:
        return {"message": "Wage approval API running", "environment": settings.env}

    return app
