#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import mimetypes
import sys
from pathlib import Path

import yaml

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.core.config import get_settings  # noqa: E402
from app.core.enums import FailurePolicy  # noqa: E402
from app.core.logging import configure_logging  # noqa: E402
from app.services.quality import analyze_image  # noqa: E402
from app.services.quality_policy import QualityPolicy  # noqa: E402


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Score clinical photos and print one JSON line per file.")
    p.add_argument("paths", nargs="+", type=Path, help="Image files to analyse.")
    p.add_argument(
        "--policy",
        type=Path,
        default=None,
        help="YAML file overriding scoring weights, divisors and thresholds.",
    )
    p.add_argument(
        "--fail-closed",
        action="store_true",
        help="Report unanalysable photos as failed instead of the neutral pass.",
    )
    return p.parse_args()


def _load_policy(path: Path | None) -> QualityPolicy:
    policy = QualityPolicy.from_settings(get_settings())
    if path is None:
        return policy
    overrides = yaml.safe_load(path.read_text()) or {}
    if not isinstance(overrides, dict):
        raise SystemExit(f"Policy file {path} must contain a mapping")
    try:
        policy = policy.with_overrides(overrides)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc
    problems = policy.problems()
    if problems:
        raise SystemExit("Invalid policy: " + "; ".join(problems))
    return policy


def main() -> None:
    args = parse_args()
    cfg = get_settings()
    configure_logging(cfg.log_level)

    policy = _load_policy(args.policy)
    failure_policy = FailurePolicy.FAIL_CLOSED if args.fail_closed else FailurePolicy(cfg.quality_failure_policy)

    failed = 0
    for path in args.paths:
        try:
            data = path.read_bytes()
        except OSError as exc:
            print(json.dumps({"path": str(path), "error": str(exc)}))
            failed += 1
            continue

        content_type, _ = mimetypes.guess_type(path.name)
        if path.suffix.lower() == ".dcm":
            content_type = "application/dicom"

        metrics = analyze_image(
            data,
            policy=policy,
            failure_policy=failure_policy,
            content_type=content_type,
            max_pixels=cfg.quality_max_image_pixels,
        )
        print(json.dumps({"path": str(path), **metrics.model_dump(mode="json", by_alias=True)}))

    if failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
