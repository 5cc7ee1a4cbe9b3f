"""
Pontaj HR: Application entry point.

This is the **only** file that assembles the app.  All business logic
lives in the `services/` package; `api/` only translates HTTP.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.api.v1.api import api_router
from pontaj.api.v1.endpoints.auth import limiter
from pontaj.core.config import settings
from pontaj.core.enums import Role
from pontaj.core.exceptions import register_exception_handlers
from pontaj.core.security import get_password_hash
from pontaj.db.base import Base
from pontaj.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from pontaj.models.assessment import Assessment, Assignment  # noqa: F401
from pontaj.models.employee import Employee  # noqa: F401
from pontaj.models.leave_request import LeaveRequest  # noqa: F401
from pontaj.models.system_setting import SystemSetting  # noqa: F401
from pontaj.models.timesheet import TimesheetEntry, TimesheetOption  # noqa: F401
from pontaj.models.user import User
from pontaj.services.settings_service import SettingsService
from pontaj.services.timesheet_option_service import TimesheetOptionService

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Seed data ───────────────────────────────────────────────────────
async def _seed_admin(session: AsyncSession) -> None:
    """Create the first admin account unless one with that email exists."""
    existing = await session.scalar(select(User).where(User.email == settings.FIRST_ADMIN_EMAIL))
    if existing is not None:
        return
    session.add(
        User(
            email=settings.FIRST_ADMIN_EMAIL,
            hashed_password=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
            full_name="System Administrator",
            role=Role.ADMIN.value,
        )
    )
    await session.commit()
    logger.info("Default admin created: %s", settings.FIRST_ADMIN_EMAIL)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    async with async_session_factory() as session:
        await _seed_admin(session)
        await SettingsService(session).initialize()
        await TimesheetOptionService(session).seed_defaults()

    logger.info("Pontaj HR v%s started", settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Employee timesheets, leave requests and compliance tests",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Login / refresh rate limiting
    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
