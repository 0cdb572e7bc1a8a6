"""FastAPI main application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agora.config import Settings, get_settings
from agora.database import Database
from agora.errors import AgoraError
from agora.routers import (
    health_router,
    auth_router,
    users_router,
    tenants_router,
    products_router,
    orders_router,
    forum_router,
    campaigns_router,
    admin_router,
)

logger = logging.getLogger(__name__)

# Mount routers under /api/v1
API_PREFIX = "/api/v1"


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application. The database lives exactly as long as the app."""
    settings = settings or get_settings()

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        # Startup
        database = Database.from_settings(settings)
        database.create_all()
        app.state.database = database
        logger.info(f"{settings.app_name} started")
        yield
        # Shutdown
        database.dispose()

    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant marketplace and forum backend",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AgoraError)
    async def agora_error_handler(request: Request, exc: AgoraError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error": type(exc).__name__},
        )

    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(users_router, prefix=API_PREFIX)
    app.include_router(tenants_router, prefix=API_PREFIX)
    app.include_router(products_router, prefix=API_PREFIX)
    app.include_router(orders_router, prefix=API_PREFIX)
    app.include_router(forum_router, prefix=API_PREFIX)
    app.include_router(campaigns_router, prefix=API_PREFIX)
    app.include_router(admin_router, prefix=API_PREFIX)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "app": settings.app_name,
            "docs": "/docs",
            "health": f"{API_PREFIX}/health"
        }

    return app


app = create_app()
