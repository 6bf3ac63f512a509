"""FastAPI application for the Pro license webhook.

Run locally with:
    python -m license_webhook.serve
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from license_webhook.config import settings
from license_webhook.handlers import register_webhook_routes


def configure_logging(level: str | None = None) -> None:
    """Console logging at the configured level."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Logging is set up when the server starts, not when the module is imported
    configure_logging()
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Pro License Webhook", lifespan=lifespan)
    register_webhook_routes(app)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "license_webhook.serve:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", "8000")),
        reload=False,
    )
