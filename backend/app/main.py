from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from app.api.deps import QualityExecutors
from app.api.v1.api import api_router
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.core.rate_limit import limiter
from app.core.startup_guardrails import validate_quality_policy_guardrails
from app.db.init_db import init_db
from app.services.audit import record_audit_event

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    cfg = get_settings()
    validate_quality_policy_guardrails(cfg)
    init_db()

    analysis = ThreadPoolExecutor(
        max_workers=cfg.quality_worker_threads,
        thread_name_prefix="quality-analysis",
    )
    # Separate pool: analysis workers block on stage futures.
    stages = (
        ThreadPoolExecutor(max_workers=cfg.quality_worker_threads * 2, thread_name_prefix="quality-stage")
        if cfg.quality_parallel_stages
        else None
    )
    app.state.quality_executors = QualityExecutors(analysis=analysis, stages=stages)
    logger.info(
        "Quality workers started: threads=%d parallel_stages=%s failure_policy=%s",
        cfg.quality_worker_threads,
        cfg.quality_parallel_stages,
        cfg.quality_failure_policy,
    )
    try:
        yield
    finally:
        app.state.quality_executors = None
        analysis.shutdown(wait=True)
        if stages is not None:
            stages.shutdown(wait=True)


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
    expose_headers=["X-Quality-Analysis"],
)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    record_audit_event(
        action="RATE_LIMIT_EXCEEDED",
        resource_type="http",
        metadata={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Rate limit exceeded",
            "retry_hint": "Please retry after the rate limit window.",
        },
    )


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok", "app": settings.app_name, "version": settings.app_version}


app.include_router(api_router)
