"""FastAPI application factory.

The database must be initialized (``init_database``) before ``create_app``
is called; the realtime change feed binds to its session factory.
"""

from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from skillbridge.auth import AuthService
from skillbridge.config.environment import EnvironmentConfig
from skillbridge.config.models import AppConfig
from skillbridge.logging import get_logger
from skillbridge.logging.context import log_context
from skillbridge.marketplace import AdminService, JobBoard
from skillbridge.notifications import NotificationService
from skillbridge.payments import CheckoutService
from skillbridge.persistence import get_session_factory
from skillbridge.realtime import ChangeFeed, bind_change_feed
from skillbridge.storage import CloudinaryUploader

from .dependencies import Services
from .errors import register_error_handlers
from .routes import router

logger = get_logger(__name__, component="api")

API_VERSION = "0.1.0"


def build_services(
    config: AppConfig,
    env_config: EnvironmentConfig,
    notifier: Optional[NotificationService] = None,
    uploader: Optional[CloudinaryUploader] = None,
    feed: Optional[ChangeFeed] = None,
) -> Services:
    """Wire services from configuration. Uploads stay disabled without CDN credentials."""
    if notifier is None:
        notifier = NotificationService(env_config, config.email)
    if uploader is None and env_config.uploads_enabled:
        uploader = CloudinaryUploader(
            env_config.cloudinary_cloud_name,
            env_config.cloudinary_upload_preset,
            config.uploads,
        )

    return Services(
        config=config,
        auth=AuthService(config, notifier),
        board=JobBoard(config, uploader),
        admin=AdminService(config, uploader, notifier),
        checkout=CheckoutService(config, env_config.paypal_recipient),
        feed=feed or ChangeFeed(),
    )


def create_app(services: Services) -> FastAPI:
    app = FastAPI(title="SkillBridge API", version=API_VERSION)
    app.state.services = services

    bind_change_feed(services.feed, get_session_factory())

    app.add_middleware(
        CORSMiddleware,
        allow_origins=services.config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        with log_context(request_id=request_id):
            response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    register_error_handlers(app)
    app.include_router(router)

    @app.get("/health")
    def health():
        """Liveness probe for containers and local tooling."""
        return {"status": "ok", "service": "skillbridge", "version": API_VERSION}

    logger.info(
        "API application created",
        extra={"event": "api.app.created", "cors_origins": services.config.api.cors_origins},
    )
    return app
