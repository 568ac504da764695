"""JSON snapshots of overlap reports on disk."""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime
from pathlib import Path

from trisearch.models import OverlapReport

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^\w]+", re.UNICODE)


def _slug(query: str) -> str:
    slug = _SLUG_RE.sub("-", query.strip().lower()).strip("-")
    return slug[:60] or "query"


def write_report(report: OverlapReport, output_dir: Path) -> Path:
    """Write *report* as ``report-<slug>-<UTC stamp>.json`` and return the path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
    path = output_dir / f"report-{_slug(report.query)}-{stamp}.json"
    path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    logger.info("Report written to %s", path)
    return path


def load_report(path: Path) -> OverlapReport:
    return OverlapReport.model_validate_json(path.read_text(encoding="utf-8"))
