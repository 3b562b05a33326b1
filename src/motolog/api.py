"""FastAPI REST backend for ride tracking and expense history."""
from __future__ import annotations

import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from motolog.config import settings
from motolog.core.metrics import summarize
from motolog.core.models import ExpenseSummary
from motolog.routers import maintenance, preferences, rides, session
from motolog.services import get_store
from motolog.store import LocalStore

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [api] %(levelname)s %(name)s %(message)s",
)
log = logging.getLogger(__name__)

app = FastAPI(title="MotoLog", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(session.router)
app.include_router(rides.router)
app.include_router(maintenance.router)
app.include_router(preferences.router)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get("/health")
def health():
    redis_ok = False
    try:
        from motolog.cache.redis_client import get_redis

        r = get_redis()
        if r is not None:
            r.ping()
            redis_ok = True
    except Exception as exc:
        log.debug("Redis health check failed: %s", exc)

    return {"status": "ok", "estimator": settings.estimator, "redis": redis_ok}


@app.get("/summary", response_model=ExpenseSummary)
def expense_summary(store: LocalStore = Depends(get_store)):
    return summarize(store.rides(), store.maintenance())
