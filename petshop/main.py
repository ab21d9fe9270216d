# petshop/main.py
from __future__ import annotations

# Load .env early so settings and os.getenv see it
from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager
from typing import Optional

import sqlalchemy as sa
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from petshop.core.config import settings
from petshop.core.errors import BookingError, ErrorSeverity, error_aggregator, log_error
from petshop.core.logging import LoggingMiddleware, get_logger, setup_logging

debug_mode = settings.debug_logging
setup_logging(debug=debug_mode, max_log_length=settings.MAX_LOG_LENGTH, level=settings.LOG_LEVEL)
logger = get_logger(__name__)

from petshop.api.dependencies import get_db
from petshop.api.routes.admin import router as admin_router
from petshop.api.routes.appointments import router as appointments_router
from petshop.api.routes.catalog import router as catalog_router
from petshop.api.routes.members import router as members_router
from petshop.db.session import AsyncSessionLocal
from petshop.services.booking import BookingCoordinator
from petshop.services.catalog import Catalog


def create_app(session_factory: Optional[async_sessionmaker] = None) -> FastAPI:
    """Build the API. Tests pass their own session factory."""
    factory = session_factory or AsyncSessionLocal

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.SEED_CATALOG_ON_STARTUP:
            try:
                async with factory() as db:
                    await app.state.catalog.seed_defaults(db)
            except Exception as e:
                # the API still serves; catalog reads will surface the store error
                log_error(e, {"operation": "seed_catalog"}, ErrorSeverity.HIGH)
        yield

    app = FastAPI(
        title="Pet Shop Booking",
        description="Grooming and day-care appointment booking",
        lifespan=lifespan,
    )
    app.state.session_factory = factory
    app.state.catalog = Catalog()
    app.state.coordinator = BookingCoordinator(app.state.catalog)

    app.middleware("http")(
        LoggingMiddleware(
            log_requests=settings.LOG_REQUESTS or debug_mode,
            log_responses=settings.LOG_RESPONSES or debug_mode,
            slow_threshold=settings.SLOW_REQUEST_THRESHOLD,
        )
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        body = exc.to_dict()
        body.setdefault("details", None)
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = [
            {"field": ".".join(str(p) for p in err["loc"] if p != "body"), "message": err["msg"]}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content={"error": "validation_error", "message": "Invalid request", "details": fields},
        )

    # -------- Health / readiness (public) --------
    @app.get("/healthz", include_in_schema=False)
    async def healthz():
        return {"ok": True}

    @app.get("/readyz", include_in_schema=False)
    async def readyz(db: AsyncSession = Depends(get_db)):
        await db.execute(sa.text("SELECT 1"))
        return {"db": "ok", "errors": error_aggregator.get_error_summary()}

    app.include_router(catalog_router)
    app.include_router(appointments_router)
    app.include_router(members_router)
    app.include_router(admin_router)
    return app


app = create_app()
