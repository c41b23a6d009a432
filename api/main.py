from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv

# Load the project-root .env before any settings object is built.
project_root = Path(__file__).parent.parent
env_path = project_root / ".env"
if env_path.exists():
    load_dotenv(env_path)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from newsroom.utils.logging import configure_logging

from .database import init_db
from .routes import router
from .settings import get_portal_settings

settings = get_portal_settings()
configure_logging(settings.log_level, settings.log_json)
logger = logging.getLogger(__name__)

app = FastAPI(title=f"{settings.site_name} Newsroom API", version="0.1.0")

init_db()
logger.info("app.started", extra={"service": settings.site_name})

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)

app.include_router(router)


@app.get("/healthz", tags=["system"])
async def healthcheck() -> dict[str, str]:
    return {"status": "ok", "service": settings.site_name}
