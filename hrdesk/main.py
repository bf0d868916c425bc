from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hrdesk.db import filters as _filters  # noqa: F401  (register tenant-scoping session events)
from hrdesk.db.init_db import init_db
from hrdesk.db.session import SessionLocal
from hrdesk.errors import AppError
from hrdesk.identity.admin import AuthAdminClient
from hrdesk.logging_config import configure_app_logging
from hrdesk.routers import attendance, dashboard, employees, functions, health, me, organizations
from hrdesk.security.config import load_security_config
from hrdesk.security.dependencies import enforce_security
from hrdesk.security.tokens import SessionTokenValidator
from hrdesk.services.provisioning import UserProvisioner
from hrdesk.settings import get_settings

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning")

        app.state.security_config = load_security_config(settings.resolved_security_config_path())
        logger.info("Loaded security config: %s", settings.resolved_security_config_path())

        app.state.token_validator = SessionTokenValidator(
            settings.jwt_secret,
            audience=settings.jwt_audience,
            leeway_seconds=settings.jwt_leeway_seconds,
        )
        if getattr(app.state, "provisioner", None) is None:
            app.state.provisioner = UserProvisioner(
                SessionLocal,
                AuthAdminClient(
                    settings.auth_url,
                    anon_key=settings.auth_anon_key,
                    service_role_key=settings.auth_service_role_key,
                    timeout=settings.auth_request_timeout_seconds,
                ),
            )

        init_db(seed=settings.seed_demo_data)
        logger.info("Database initialized (tables ensured + seed if needed)")

        yield

    # Global dependency: every route goes through the security rules.
    app = FastAPI(title="hrdesk", dependencies=[Depends(enforce_security)], lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    @app.exception_handler(AppError)
    async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse({"detail": exc.message}, status_code=exc.http_status)

    app.include_router(health.router)
    app.include_router(me.router)
    app.include_router(employees.router)
    app.include_router(attendance.router)
    app.include_router(dashboard.router)
    app.include_router(organizations.router)
    app.include_router(functions.router)

    return app


app = create_app()
