from __future__ import annotations

import os
import logging
import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from taco_api.routes.blueprints import router as blueprints_router
from taco_api.routes.logs import router as logs_router
from taco_api.routes.preview import router as preview_router


def _setup_logging() -> None:
    # Level can be adjusted via ENV LOG_LEVEL
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def _split_env(name: str) -> list[str]:
    raw = os.getenv(name, "*").strip()
    if raw == "*":
        return ["*"]
    return [part.strip() for part in raw.split(",") if part.strip()]


def create_app() -> FastAPI:
    _setup_logging()
    app = FastAPI(title="TACO Builder API", version="0.1.0")

    logger = logging.getLogger("taco_api.middleware")

    # CORS support (allow-all by default; override via env)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_split_env("CORS_ALLOW_ORIGINS"),
        allow_credentials=True,
        allow_methods=[m.upper() for m in _split_env("CORS_ALLOW_METHODS")],
        allow_headers=_split_env("CORS_ALLOW_HEADERS"),
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        client = request.client.host if request.client else "-"
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            logger.info(
                "http_request method=%s path=%s status=%s duration_ms=%s client=%s",
                request.method,
                request.url.path,
                status,
                int((time.time() - start) * 1000),
                client,
            )

    app.include_router(blueprints_router)
    app.include_router(logs_router)
    app.include_router(preview_router)
    return app


app = create_app()
