from enum import Enum


class QualityStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"


class FailurePolicy(str, Enum):
    FAIL_OPEN = "fail_open"
    FAIL_CLOSED = "fail_closed"


class CheckVerdict(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"


class AnalysisDisposition(str, Enum):
    COMPLETED = "completed"
    FALLBACK = "fallback"
