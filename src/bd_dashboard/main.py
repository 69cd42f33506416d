"""FastAPI application factory.

Creates the app with logging middleware, CORS, the error handlers that
render ``{"success": false, "error": ...}`` bodies, lifespan events that
own the Bitable client, and the /api router.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.bd_dashboard.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.bd_dashboard.api.v1.health import router as health_router
from src.bd_dashboard.api.v1.router import api_router
from src.bd_dashboard.bitable.client import BitableClient
from src.bd_dashboard.bitable.field_map import FieldMapCache
from src.bd_dashboard.bitable.persons import PersonField, PersonResolver
from src.bd_dashboard.config import Settings, get_settings
from src.bd_dashboard.core.errors import AppError
from src.bd_dashboard.records.dates import DateHeuristics
from src.bd_dashboard.records.field_mapping import PROJECT_FIELD
from src.bd_dashboard.services.customers import CustomerService
from src.bd_dashboard.services.deals import DealService
from src.bd_dashboard.services.projects import ProjectService
from src.bd_dashboard.services.reminders import ReminderService

logger = structlog.get_logger(__name__)


def init_state(app: FastAPI, settings: Settings, client: Any) -> None:
    """Build caches and services around ``client`` and attach them to app.state."""
    heuristics = DateHeuristics(
        serial_min=settings.DATE_SERIAL_MIN,
        serial_max=settings.DATE_SERIAL_MAX,
    )
    field_maps = FieldMapCache(client, ttl=settings.FIELD_MAP_TTL_SECONDS)
    persons = PersonResolver(
        client,
        env_map=settings.get_person_id_map(),
        page_size=settings.SCAN_PAGE_SIZE,
        ttl=settings.PERSON_INDEX_TTL_SECONDS,
    )

    # The project table's BD column backs the customer owner lookup
    owner_fallback = None
    if settings.project_app_token and settings.project_table_id:
        owner_fallback = PersonField(
            settings.project_app_token, settings.project_table_id, PROJECT_FIELD["bd"]
        )

    projects = ProjectService(
        client,
        settings.project_app_token,
        settings.project_table_id,
        persons,
        page_size=settings.SCAN_PAGE_SIZE,
        heuristics=heuristics,
    )

    app.state.settings = settings
    app.state.bitable_client = client
    app.state.field_maps = field_maps
    app.state.persons = persons
    app.state.customer_service = CustomerService(
        client,
        settings.customer_app_token,
        settings.customer_table_id,
        field_maps,
        persons,
        owner_fallback=owner_fallback,
        page_size=settings.SCAN_PAGE_SIZE,
    )
    app.state.project_service = projects
    app.state.deal_service = DealService(
        client,
        settings.deal_app_token,
        settings.deal_table_id,
        page_size=settings.SCAN_PAGE_SIZE,
        heuristics=heuristics,
    )
    app.state.reminder_service = ReminderService(projects)

    logger.info(
        "app.state_initialized",
        customer_table=settings.customer_table_id or None,
        project_table=settings.project_table_id or None,
        deal_table=settings.deal_table_id or None,
        person_overrides=len(persons.env_map),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: open the Bitable client on startup, close on shutdown."""
    settings = get_settings()
    configure_structlog()

    client = BitableClient(
        settings.FEISHU_APP_ID,
        settings.FEISHU_APP_SECRET,
        base_url=settings.FEISHU_BASE_URL,
        timeout=settings.VENDOR_TIMEOUT_SECONDS,
    )
    init_state(app, settings, client)
    logger.info("app.started", environment=settings.ENVIRONMENT.value, port=settings.PORT)

    yield

    await client.aclose()
    logger.info("app.stopped")


# ── Error Handlers ───────────────────────────────────────────────────────────


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log("request.app_error", path=request.url.path, status_code=exc.status_code, error=str(exc))
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid request")
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": f"{location}: {message}" if location else message},
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="BD Dashboard API",
        version="0.1.0",
        description="Feishu Bitable proxy for the BD daily dashboard",
        lifespan=lifespan,
    )
    app.state.build_id = f"bd-dashboard-{datetime.now(timezone.utc).isoformat()}"

    # Middleware is added in reverse order (last added = outermost)

    # CORS middleware
    if settings.CORS_ALLOWED_ORIGINS == "*":
        origins = ["*"]
    else:
        origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Logging middleware (outermost -- also renders unhandled exceptions)
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    app.include_router(health_router)
    app.include_router(api_router)

    return app


# Module-level app for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(app, host=_settings.HOST, port=_settings.PORT)
