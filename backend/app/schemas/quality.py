from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.enums import CheckVerdict, FailurePolicy, QualityStatus


class QualityMetrics(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    quality_score: int = Field(ge=0, le=100)
    brightness_level: int = Field(ge=0, le=100)
    contrast_score: int = Field(ge=0, le=100)
    sharpness_rating: int = Field(ge=0, le=100)
    status: QualityStatus
    feedback: str
    recommendations: tuple[str, ...] = ()


class QualityCheckData(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_blurry: bool
    focus_score: float
    is_over_exposed: bool
    is_under_exposed: bool


class QualityCheckRead(BaseModel):
    status: CheckVerdict
    reason: str
    data: QualityCheckData


class QualityPolicyRead(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    brightness_divisor: float
    contrast_divisor: float
    sharpness_divisor: float
    brightness_weight: float
    contrast_weight: float
    sharpness_weight: float
    pass_score: int
    excellent_score: int
    fair_score: int
    low_brightness: int
    high_brightness: int
    low_contrast: int
    low_sharpness: int
    failure_policy: FailurePolicy
