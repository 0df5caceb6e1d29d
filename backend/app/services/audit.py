from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.db.models import AuditLog
from app.db.session import SessionLocal
from app.services.errors import QualityAnalysisError

logger = logging.getLogger(__name__)


def write_audit_log(
    db: Session,
    *,
    action: str,
    resource_type: str,
    resource_id: str | None,
    metadata: dict,
) -> AuditLog:
    log = AuditLog(
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        metadata_json=metadata,
    )
    db.add(log)
    db.flush()
    return log


def record_audit_event(*, action: str, resource_type: str, metadata: dict | None = None) -> None:
    try:
        with SessionLocal() as db:
            write_audit_log(
                db,
                action=action,
                resource_type=resource_type,
                resource_id=None,
                metadata=metadata or {},
            )
            db.commit()
    except Exception:
        # Audit writes must never fail the request that triggered them.
        logger.warning("Failed to write audit event %s", action, exc_info=True)


def record_analysis_failure(error: QualityAnalysisError, *, metadata: dict | None = None) -> None:
    record_audit_event(
        action="QUALITY_ANALYSIS_FAILED",
        resource_type="photo_quality",
        metadata={"code": error.code, "message": str(error), **(metadata or {})},
    )
