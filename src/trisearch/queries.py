"""Load batches of search queries from YAML files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


def _clean(raw: list[Any]) -> list[str]:
    """Strip entries, drop blanks and ``#`` comments, dedupe case-insensitively."""
    seen: set[str] = set()
    cleaned: list[str] = []
    for entry in raw:
        if entry is None:
            continue
        text = str(entry).strip()
        if not text or text.startswith("#"):
            continue
        key = text.casefold()
        if key in seen:
            logger.debug("Duplicate query skipped: %s", text)
            continue
        seen.add(key)
        cleaned.append(text)
    return cleaned


def load_queries(queries_path: Path) -> list[str]:
    """Parse a queries file and return the queries in file order.

    Accepted layouts::

        queries: [foo, bar]

        groups:
          skincare:
            queries: [foo, bar]
    """
    with open(queries_path, encoding="utf-8") as fh:
        cfg: dict[str, Any] = yaml.safe_load(fh) or {}

    if not isinstance(cfg, dict):
        raise ValueError(f"{queries_path}: expected a mapping at the top level")

    raw: list[Any] = list(cfg.get("queries", []) or [])
    groups: dict[str, Any] = cfg.get("groups", {}) or {}
    for name, group in groups.items():
        entries = (group or {}).get("queries", []) or []
        if not entries:
            logger.warning("Skipping empty query group: %s", name)
            continue
        raw.extend(entries)

    queries = _clean(raw)
    logger.info("Loaded %d queries from %s", len(queries), queries_path)
    return queries
