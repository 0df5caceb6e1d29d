from __future__ import annotations


class QualityAnalysisError(Exception):
    code = "ANALYSIS_FAILED"


class DecodeError(QualityAnalysisError):
    """Payload is empty, truncated, corrupt, too large, or in an unsupported format."""

    code = "DECODE_FAILED"


class ComputeError(QualityAnalysisError):
    """Numeric or resource failure while computing statistics or convolving."""

    code = "COMPUTE_FAILED"
