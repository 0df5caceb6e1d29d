from __future__ import annotations

import asyncio
from functools import partial

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from slowapi.util import get_remote_address
from starlette.concurrency import run_in_threadpool

from app.api.deps import QualityExecutors, get_quality_executors
from app.core.config import Settings, get_settings
from app.core.enums import AnalysisDisposition, FailurePolicy
from app.core.rate_limit import limiter
from app.schemas.quality import QualityCheckData, QualityCheckRead, QualityMetrics, QualityPolicyRead
from app.services.audit import record_analysis_failure
from app.services.errors import DecodeError
from app.services.exposure import check_image_quality
from app.services.quality import evaluate_image_quality, resolve_outcome
from app.services.quality_policy import QualityPolicy

router = APIRouter(prefix="/quality", tags=["quality"])
settings = get_settings()

ALLOWED_CONTENT_TYPES = {
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/tiff",
    "image/bmp",
    "image/gif",
    "application/dicom",
    "application/dicom+json",
    "application/octet-stream",
}

ANALYSIS_HEADER = "X-Quality-Analysis"


def _media_type(request: Request) -> str:
    raw = request.headers.get("content-type") or "application/octet-stream"
    return raw.split(";", 1)[0].strip().lower()


async def _read_image_body(request: Request, cfg: Settings) -> tuple[bytes, str]:
    content_type = _media_type(request)
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(status_code=415, detail="Unsupported content type")

    content_length = request.headers.get("content-length")
    if content_length:
        try:
            declared = int(content_length)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail="Invalid Content-Length") from exc
        if declared > cfg.max_upload_bytes:
            raise HTTPException(status_code=413, detail="File exceeds max upload size")

    raw = await request.body()
    if len(raw) > cfg.max_upload_bytes:
        raise HTTPException(status_code=413, detail="File exceeds max upload size")
    if not raw:
        raise HTTPException(status_code=400, detail="No image data provided")
    return raw, content_type


@router.post("/analyze", response_model=QualityMetrics)
@limiter.limit(settings.rate_limit_analyze_per_ip, key_func=get_remote_address)
async def analyze_photo(
    request: Request,
    response: Response,
    cfg: Settings = Depends(get_settings),
    executors: QualityExecutors = Depends(get_quality_executors),
):
    raw, content_type = await _read_image_body(request, cfg)

    loop = asyncio.get_running_loop()
    outcome = await loop.run_in_executor(
        executors.analysis,
        partial(
            evaluate_image_quality,
            raw,
            policy=QualityPolicy.from_settings(cfg),
            content_type=content_type,
            max_pixels=cfg.quality_max_image_pixels,
            executor=executors.stages,
        ),
    )

    if outcome.error is not None and cfg.audit_failures_enabled:
        await run_in_threadpool(
            record_analysis_failure,
            outcome.error,
            metadata={"content_type": content_type, "byte_size": len(raw)},
        )

    disposition = AnalysisDisposition.COMPLETED if outcome.ok else AnalysisDisposition.FALLBACK
    response.headers[ANALYSIS_HEADER] = disposition.value
    return resolve_outcome(outcome, FailurePolicy(cfg.quality_failure_policy))


@router.post("/check", response_model=QualityCheckRead)
@limiter.limit(settings.rate_limit_analyze_per_ip, key_func=get_remote_address)
async def quick_check_photo(
    request: Request,
    response: Response,
    cfg: Settings = Depends(get_settings),
    executors: QualityExecutors = Depends(get_quality_executors),
):
    raw, content_type = await _read_image_body(request, cfg)

    loop = asyncio.get_running_loop()
    try:
        result = await loop.run_in_executor(
            executors.analysis,
            partial(
                check_image_quality,
                raw,
                blur_threshold=cfg.focus_blur_threshold,
                exposure_ratio_threshold=cfg.exposure_ratio_threshold,
                content_type=content_type,
                max_pixels=cfg.quality_max_image_pixels,
            ),
        )
    except DecodeError as exc:
        raise HTTPException(status_code=422, detail="Failed to process image") from exc

    return QualityCheckRead(
        status=result.verdict,
        reason=result.reason,
        data=QualityCheckData(
            is_blurry=result.is_blurry,
            focus_score=result.focus_score,
            is_over_exposed=result.is_over_exposed,
            is_under_exposed=result.is_under_exposed,
        ),
    )


@router.get("/policy", response_model=QualityPolicyRead)
def read_quality_policy(cfg: Settings = Depends(get_settings)):
    policy = QualityPolicy.from_settings(cfg)
    return QualityPolicyRead(
        **policy.as_dict(),
        failure_policy=FailurePolicy(cfg.quality_failure_policy),
    )
