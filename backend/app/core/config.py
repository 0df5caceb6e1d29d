from __future__ import annotations

import json
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Photo Quality API"
    app_version: str = "0.1.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "sqlite:///./photo_quality.db"
    audit_failures_enabled: bool = True

    cors_allowed_origins: str = "http://localhost:3000"

    rate_limit_analyze_per_ip: str = "120/minute"
    rate_limit_enabled: bool = True

    max_upload_bytes: int = Field(default=25 * 1024 * 1024)

    # Calibration divisors map raw statistics onto 0-100.
    quality_brightness_divisor: float = 255.0
    quality_contrast_divisor: float = 128.0
    quality_sharpness_divisor: float = 50.0

    quality_brightness_weight: float = 0.3
    quality_contrast_weight: float = 0.3
    quality_sharpness_weight: float = 0.4

    quality_pass_score: int = 60
    quality_excellent_score: int = 80
    quality_fair_score: int = 40

    quality_low_brightness: int = 30
    quality_high_brightness: int = 85
    quality_low_contrast: int = 25
    quality_low_sharpness: int = 40

    quality_failure_policy: Literal["fail_open", "fail_closed"] = "fail_open"
    quality_allow_fail_open: bool = False
    quality_worker_threads: int = Field(default=4, ge=1)
    quality_parallel_stages: bool = False
    quality_max_image_pixels: int = Field(default=64_000_000, gt=0)

    focus_blur_threshold: float = 100.0
    exposure_ratio_threshold: float = 0.01

    @property
    def is_local_dev(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def cors_allowed_origins_list(self) -> list[str]:
        raw = self.cors_allowed_origins.strip()
        if not raw:
            return []
        if raw.startswith("["):
            parsed = json.loads(raw)
            if not isinstance(parsed, list):
                raise ValueError("CORS_ALLOWED_ORIGINS JSON must be an array")
            return [str(x) for x in parsed]
        return [part.strip() for part in raw.split(",") if part.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
