# -*- coding: utf-8 -*-
"""
Menu/workout tracker sync API.

Stores per-user menu days, workout days and favorite foods and serves them back
to every device the user logs in from.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .app_db import init_app_db
from .auth.api import router as auth_router
from .auth.security import get_current_user_from_request
from .config import settings
from .entries.api import router as entries_router

logger = logging.getLogger(__name__)
logging.getLogger("menufit").setLevel(settings.log_level)

app = FastAPI(
    title="menufit",
    description="Menu and workout tracking with offline-first client sync",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup_init_db() -> None:
    init_app_db(settings.app_db_path)


# Ensure the app DB exists even when lifespan events are not triggered (e.g. some test clients).
init_app_db(settings.app_db_path)


@app.middleware("http")
async def _auth_gate(request: Request, call_next):
    logger.debug("%s %s", request.method, request.url.path)
    if request.url.path.startswith("/sync"):
        try:
            request.state.user = get_current_user_from_request(request)
        except HTTPException as exc:
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
    return await call_next(request)


app.include_router(auth_router)
app.include_router(entries_router)


@app.get("/health")
def health() -> dict:
    return {"ok": True}


def run() -> None:
    """Console entry point (used by pyproject [project.scripts])."""
    import uvicorn

    uvicorn.run("menufit.api:app", host=settings.host, port=settings.port, reload=False)
