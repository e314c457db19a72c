"""Serialize practice reports to versioned JSON."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Union

from contracts import PracticeReport
from contracts.versioning import make_envelope
from log_config.logger import get_logger

logger = get_logger(__name__)


def report_to_dict(report: PracticeReport, include_raw: bool = False) -> Dict[str, Any]:
    """Plain-dict form of a report.

    The service's raw response is dropped unless ``include_raw`` is set.
    """
    data = asdict(report)
    data["intonation"]["similarity"] = round(report.intonation.similarity, 2)
    data["intonation"]["feedback"]["tier"] = report.intonation.feedback.tier.value
    if report.overall_feedback is not None:
        data["overall_feedback"]["tier"] = report.overall_feedback.tier.value
    if data["assessment"] is not None and not include_raw:
        data["assessment"].pop("raw", None)
    return data


def save_report(report: PracticeReport, path: Union[str, Path], include_raw: bool = False) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = make_envelope(report_to_dict(report, include_raw=include_raw))
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info(f"Report written to {path}")
    return path
