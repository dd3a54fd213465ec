from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.cep import CepAdminEvaluator, load_privilege_catalog
from app.errors import CepAdminError
from app.google_auth import DirectoryClient, FirebaseTokenValidator, GoogleAuthConfig, ServiceAccountCredentials
from app.logging_config import configure_app_logging
from app.routers import health, roles
from app.settings import get_settings

logger = logging.getLogger(__name__)


def error_body(exc: CepAdminError) -> dict[str, object]:
    body: dict[str, object] = {"status": exc.status, "code": exc.code, "message": exc.message}
    details = exc.details()
    if details:
        body["details"] = details
    return {"error": body}


async def cep_admin_error_handler(request: Request, exc: CepAdminError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=error_body(exc), headers=headers)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning")

        catalog = load_privilege_catalog()
        app.state.privilege_catalog = catalog
        logger.info("Loaded %d required CEP admin privileges", len(catalog))

        auth_config = GoogleAuthConfig.from_environ()
        app.state.token_validator = FirebaseTokenValidator(auth_config)

        credentials = ServiceAccountCredentials.from_config(auth_config, timeout=settings.directory_timeout_seconds)
        directory = DirectoryClient(credentials, timeout=settings.directory_timeout_seconds)
        app.state.evaluator = CepAdminEvaluator(
            directory,
            catalog,
            customer_id=settings.customer_id,
            max_workers=settings.role_fetch_workers,
        )
        logger.info(
            "Directory access via %s (delegated admin: %s)",
            credentials.service_account_email,
            auth_config.delegated_admin or "none",
        )

        yield

    app = FastAPI(title="CEP Admin Roles", lifespan=lifespan)
    app.add_exception_handler(CepAdminError, cep_admin_error_handler)

    app.include_router(health.router)
    app.include_router(roles.router)

    return app


app = create_app()
