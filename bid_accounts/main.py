import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from bid_accounts.core.config import Settings, settings as default_settings
from bid_accounts.core.database import Database
from bid_accounts.core.errors import register_exception_handlers
from bid_accounts.core.logging_config import configure_logging
from bid_accounts.core.request_id import RequestIdMiddleware
from bid_accounts.core.security import PasswordHasher, TokenGenerator
from bid_accounts.routers import auth
from bid_accounts.services.email_service import EmailService

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API with its database, notifier and routes"""
    settings = settings or default_settings
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database(settings.database_url, echo=settings.sql_echo).open()
        if settings.auto_create_db:
            database.create_all()
        app.state.database = database
        logger.info(
            "%s %s started (verification policy: %s)",
            settings.app_name, settings.app_version, settings.verification_policy.value,
        )
        try:
            yield
        finally:
            database.close()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Account registration, email verification and login",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.notifier = EmailService(settings)
    app.state.password_hasher = PasswordHasher(rounds=settings.password_hash_rounds)
    app.state.token_generator = TokenGenerator(ttl=timedelta(hours=settings.verification_token_ttl_hours))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)
    register_exception_handlers(app)

    app.include_router(auth.router)

    @app.get("/", response_class=PlainTextResponse)
    def read_root():
        """Liveness string"""
        return "Email Verification API is running..."

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "app": settings.app_name}

    return app


def run() -> None:
    import uvicorn

    uvicorn.run(create_app(), host=default_settings.host, port=default_settings.port)


if __name__ == "__main__":
    run()
