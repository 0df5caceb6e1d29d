from __future__ import annotations

from app.core.config import Settings
from app.services.quality_policy import QualityPolicy


class StartupGuardrailError(RuntimeError):
    pass


def validate_quality_policy_guardrails(settings: Settings) -> None:
    errors = QualityPolicy.from_settings(settings).problems()

    if not 0 <= settings.exposure_ratio_threshold <= 1:
        errors.append("EXPOSURE_RATIO_THRESHOLD must be within [0, 1]")

    # Fail-open can pass an unanalysable clinical photo; outside dev it must be opted into.
    if (
        not settings.is_local_dev
        and settings.quality_failure_policy == "fail_open"
        and not settings.quality_allow_fail_open
    ):
        errors.append(
            "QUALITY_FAILURE_POLICY=fail_open requires QUALITY_ALLOW_FAIL_OPEN=true in non-dev"
        )

    if errors:
        raise StartupGuardrailError("; ".join(errors))
