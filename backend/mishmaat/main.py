# backend/mishmaat/main.py
from __future__ import annotations

import logging
import os

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from mishmaat.db import healthcheck
from mishmaat.realtime import install_change_capture
from mishmaat.routers.chat import router as chat_router
from mishmaat.routers.checklists import router as checklists_router
from mishmaat.routers.events import router as events_router
from mishmaat.routers.news import router as news_router
from mishmaat.routers.platoons import router as platoons_router
from mishmaat.routers.realtime import router as realtime_router
from mishmaat.routers.self_service import router as self_service_router
from mishmaat.routers.share import router as share_router
from mishmaat.routers.soldiers import router as soldiers_router

logger = logging.getLogger(__name__)


def build_app() -> FastAPI:
    app = FastAPI(title="Mishmaat API")

    frontend_origin = os.getenv("FRONTEND_ORIGIN", "http://localhost:5173")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[frontend_origin],
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1|0\.0\.0\.0)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    # every committed row change feeds the realtime hub
    install_change_capture()

    @app.get("/health")
    def health():
        try:
            return healthcheck()
        except SQLAlchemyError as exc:
            logger.error(f"[health] database unreachable: {exc}")
            raise HTTPException(status_code=503, detail="Database unavailable")

    app.include_router(platoons_router)
    app.include_router(soldiers_router)
    app.include_router(events_router)
    app.include_router(checklists_router)
    app.include_router(news_router)
    app.include_router(self_service_router)
    app.include_router(chat_router)
    app.include_router(share_router)
    app.include_router(realtime_router)

    return app


app = build_app()
