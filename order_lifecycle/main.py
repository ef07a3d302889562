"""FastAPI entrypoint for the order lifecycle service."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from order_lifecycle.api.v1.api import api_router
from order_lifecycle.core.config import settings
from order_lifecycle.db import session as db_session
from order_lifecycle.db.base import Base

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    Base.metadata.create_all(bind=db_session.engine)
    logger.info("[BOOTSTRAP] schema ready env=%s", settings.app_env)
    yield


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)
app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
