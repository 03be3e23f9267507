from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from product_catalog.api.v1.routes import router as v1_router
from product_catalog.core.config import get_settings
from product_catalog.core.logging import configure_logging, get_logger
from product_catalog.middlewares.request_id import REQUEST_ID_HEADER, RequestIdMiddleware
from product_catalog.repositories import open_store
from product_catalog.services import ProductCatalog

logger = get_logger(__name__)


def create_app(catalog: Optional[ProductCatalog] = None) -> FastAPI:
    """
    Build the application.

    Without ``catalog`` the lifespan opens the product store from settings and
    closes it on shutdown; tests hand in a catalog over their own store.
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        if catalog is not None:
            app.state.catalog = catalog
            yield
            return

        with open_store(settings.database_url_resolved, create_schema=settings.db_create_schema) as store:
            app.state.catalog = ProductCatalog(store)
            logger.info(
                "%s %s started (env=%s, auth=%s)",
                settings.app_name,
                settings.app_version,
                settings.environment,
                settings.auth_enabled,
            )
            yield

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        request_id = getattr(request.state, "request_id", None)
        logger.exception("Unhandled exception: %s", exc, extra={"request_id": request_id or "-"})
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "Unexpected error",
                "requestId": request_id,
            },
        )

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "service": settings.app_name,
            "env": settings.environment,
            "version": settings.app_version,
        }

    app.include_router(v1_router)
    return app


app = create_app()
