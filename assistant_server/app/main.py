# app/main.py
# -*- coding: utf-8 -*-
"""
Home Security Assistant — FastAPI application entrypoint
--------------------------------------------------------
This file wires everything together:

- Sets up central logging.
- Creates the FastAPI app and its ChatService (sessions + Gemini client).
- Adds middleware:
    * request logging (method, path, status, duration)
    * CORS for dev
- Registers error handlers:
    * AssistantError -> {"error": "..."} with the error's status
    * anything else  -> 500 {"error": "Internal server error"}
- Mounts routers:
    * /api/chat   (HTTP)  → chat with the home-security assistant
    * /health     (HTTP)  → liveness + session count
    * /           (files) → static web page from STATIC_DIR, if present
- Exposes an ASGI `app` object for uvicorn.

Typical run command (dev):

    uvicorn app.main:app --host 0.0.0.0 --port 3000 --reload

"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.core.config import Settings, settings as default_settings
from app.core.dispatch import ChatService
from app.core.errors import AssistantError
from app.routers.chat import router as chat_router
from app.utils import Stopwatch, setup_logging, get_logger


setup_logging(debug=default_settings.debug)
logger = get_logger(__name__)
access_logger = get_logger("home_security.access")


def create_app(
    settings: Optional[Settings] = None,
    chat_service: Optional[ChatService] = None,
) -> FastAPI:
    """
    Application factory.

    Returns a configured FastAPI instance ready for uvicorn. Tests pass
    their own settings and/or a ChatService built around a fake client.
    """
    settings = settings or default_settings

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.chat_service = chat_service or ChatService(settings)

    # ------------------------------------------------------------------
    # Middleware
    # ------------------------------------------------------------------
    if settings.environment != "production":
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        client = request.client.host if request.client else "-"
        with Stopwatch(request.url.path, access_logger, level=None) as sw:
            try:
                response = await call_next(request)
            except Exception:
                access_logger.info(
                    "%s %s %s -> 500",
                    client,
                    request.method,
                    request.url.path,
                )
                raise
        access_logger.info(
            "%s %s %s -> %d (%.3f s)",
            client,
            request.method,
            request.url.path,
            response.status_code,
            sw.elapsed,
        )
        return response

    # ------------------------------------------------------------------
    # Error handlers
    # ------------------------------------------------------------------
    @app.exception_handler(AssistantError)
    async def assistant_error_handler(request: Request, exc: AssistantError):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception in %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    # ------------------------------------------------------------------
    # Routers
    # ------------------------------------------------------------------
    app.include_router(chat_router)

    @app.get("/health", tags=["meta"])
    async def health_check():
        """
        Lightweight health check for monitoring scripts.
        """
        service: ChatService = app.state.chat_service
        return {
            "status": "ok",
            "app_name": settings.app_name,
            "environment": settings.environment,
            "sessions": len(service.sessions),
            "backend_client": service.backend.state,
        }

    # Static files last: a mount at "/" would shadow every route after it.
    if settings.static_dir.is_dir():
        app.mount(
            "/",
            StaticFiles(directory=settings.static_dir, html=True),
            name="static",
        )
    else:
        logger.info("Static dir %s not found; not serving static files.", settings.static_dir)

    logger.info(
        "FastAPI app created (env=%s, model=%s, api_key_set=%s)",
        settings.environment,
        settings.gemini_model,
        bool(settings.gemini_api_key),
    )
    return app


# ASGI app for uvicorn / gunicorn
app = create_app()


if __name__ == "__main__":
    """
    Allow `python3 -m app.main` during development.
    """
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=(default_settings.environment != "production"),
    )
