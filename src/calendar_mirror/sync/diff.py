"""Decide whether a destination event has drifted from its source projection."""

import logging
from datetime import datetime

from ..models.event import EventContent
from ..utils.date_utils import ensure_utc
from .codec import strip_tag

logger = logging.getLogger(__name__)


def _same_instant(a: datetime, b: datetime) -> bool:
    # Graph stores whole seconds; sub-second jitter is not a change
    return ensure_utc(a).replace(microsecond=0) == ensure_utc(b).replace(microsecond=0)


def _comparable_description(text: str) -> str:
    return strip_tag(text).replace("\r\n", "\n")


def needs_update(existing: EventContent, candidate: EventContent) -> bool:
    """
    Compare an existing destination event against a candidate projection.

    Fields are checked in order (title, start, end, location, description)
    and the first mismatch wins. The correlation tag is stripped from both
    descriptions so a reformatted tag alone never causes a write.

    Args:
        existing: Destination event as currently stored
        candidate: Projection built from the source event

    Returns:
        True if the destination must be rewritten
    """
    if existing.title != candidate.title:
        logger.debug(f"Title changed: {existing.title!r} -> {candidate.title!r}")
        return True
    if not _same_instant(existing.start, candidate.start):
        logger.debug(f"Start changed for {candidate.title!r}")
        return True
    if not _same_instant(existing.end, candidate.end):
        logger.debug(f"End changed for {candidate.title!r}")
        return True
    if (existing.location or "") != (candidate.location or ""):
        logger.debug(f"Location changed for {candidate.title!r}")
        return True
    if _comparable_description(existing.description) != _comparable_description(
        candidate.description
    ):
        logger.debug(f"Description changed for {candidate.title!r}")
        return True
    return False
