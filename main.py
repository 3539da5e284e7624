"""
Main FastAPI application (entrypoint).

Responsibilities:
- Build the service container (store, SMS sender, scheduler) from settings
- Wire API routers (subscriptions/metro/admin)
- Register centralized exception handlers and request-id logging
- Start the reminder scheduler on startup; on shutdown stop it *before*
  disposing the DB engine so no tick runs against a closed pool
- Health / readiness endpoints

Run:
- uvicorn main:app --host 0.0.0.0 --port 8000
"""
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import uvicorn

from api import routes_subscriptions, routes_metro, routes_admin
from config.settings import Settings, settings as default_settings
from core.container import ServiceContainer, build_container
from core.db import ping
from core.exception_handlers import register_exception_handlers
from core.logging import configure_logging, request_logging_middleware
from core.response import ok, error
from services.parameter_service import ParameterStore, hydrate_settings

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, container: Optional[ServiceContainer] = None) -> FastAPI:
    settings = settings or default_settings
    if container is None:
        if settings.USE_SSM:
            hydrate_settings(settings, ParameterStore(settings.AWS_REGION))
        container = build_container(settings)

    app = FastAPI(title=settings.API_TITLE, version=settings.API_VERSION)
    app.state.container = container

    # CORS - adjust origins for production
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(routes_subscriptions.router, prefix="/subscriptions", tags=["subscriptions"])
    app.include_router(routes_metro.router, prefix="/metro", tags=["metro"])
    app.include_router(routes_admin.router, prefix="/admin", tags=["admin"])

    register_exception_handlers(app)

    # Add request logging middleware (adds X-Request-ID header and logs)
    app.middleware("http")(request_logging_middleware)

    @app.get("/health")
    async def health():
        """Simple health endpoint used by load balancers and orchestrators."""
        return ok({"status": "ok", "scheduler_running": container.scheduler.running})

    @app.get("/ready")
    async def ready():
        """Readiness: check DB connectivity if configured."""
        if container.engine is None:
            return ok({"ready": True, "store": "memory"})
        try:
            await ping(container.engine)
        except Exception as e:
            logger.warning("Readiness check failed: %s", e)
            return JSONResponse(status_code=503, content=error(code="db_unreachable", message="DB unavailable"))
        return ok({"ready": True, "store": "db"})

    @app.on_event("startup")
    async def on_startup():
        await container.startup()

    @app.on_event("shutdown")
    async def on_shutdown():
        await container.shutdown()

    return app


configure_logging(default_settings.LOG_LEVEL)
app = create_app()

if __name__ == "__main__":
    # Run with: python main.py for local dev. For production use uvicorn; keep to one
    # worker process, since every process runs its own scheduler.
    uvicorn.run("main:app", host="0.0.0.0", port=8000)
