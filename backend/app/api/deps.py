from __future__ import annotations

from concurrent.futures import Executor
from dataclasses import dataclass

from fastapi import HTTPException, Request


@dataclass
class QualityExecutors:
    analysis: Executor
    stages: Executor | None = None


def get_quality_executors(request: Request) -> QualityExecutors:
    executors = getattr(request.app.state, "quality_executors", None)
    if executors is None:
        raise HTTPException(status_code=503, detail="Quality workers are not running")
    return executors
