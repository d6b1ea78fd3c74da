"""Evidence identity and deduplication."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..orchestration.models import Evidence

logger = logging.getLogger(__name__)


def normalize_locator(locator: str) -> str:
    """Normalize a URL for comparison."""
    normalized = locator.strip()
    if normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized


def evidence_id(locator: str) -> str:
    """Stable identifier derived from a locator."""
    return hashlib.sha1(normalize_locator(locator).encode("utf-8")).hexdigest()[:16]


def deduplicate_evidence(items: Iterable[Evidence]) -> list[Evidence]:
    """
    Drop evidence whose id was already seen.

    Keeps the first occurrence of each id and the relative order of the
    survivors.

    Args:
        items: Evidence in arrival order (potentially with duplicates)

    Returns:
        Deduplicated list of evidence
    """
    seen: set[str] = set()
    unique: list[Evidence] = []
    total = 0

    for item in items:
        total += 1
        if item.id in seen:
            logger.debug(f"Dropped duplicate evidence: {item.locator}")
            continue
        seen.add(item.id)
        unique.append(item)

    if total != len(unique):
        logger.debug(f"Deduplicated {total} evidence items to {len(unique)}")
    return unique
