"""
Correlation tag codec.

A destination event created by this tool carries a single-line marker at the
end of its description::

    <!-- [SYNCED_FROM_SOURCE] SOURCE_ID:abc_2024-01-01T09:00:00.000Z -->

The marker is the only link between a destination event and the source
instance it mirrors. Anything that does not parse as a well-formed marker for
the current label is treated as "no tag"; these functions never raise on
malformed or missing text.
"""

import re
from functools import lru_cache
from typing import Optional

from ..config import SYNC_MARKER

SEPARATOR = "\n\n"


@lru_cache(maxsize=8)
def _tag_pattern(label: str) -> re.Pattern:
    return re.compile(
        r"<!--[ \t]*" + re.escape(label) + r"[ \t]+SOURCE_ID:(\S+?)[ \t]*-->"
    )


def encode(instance_id: str, label: str = SYNC_MARKER) -> str:
    """Build the annotation suffix carrying ``instance_id``."""
    return f"{SEPARATOR}<!-- {label} SOURCE_ID:{instance_id} -->"


def has_tag(text: Optional[str], label: str = SYNC_MARKER) -> bool:
    """True if ``text`` contains a well-formed tag for ``label``."""
    return extract_instance_id(text, label) is not None


def extract_instance_id(text: Optional[str], label: str = SYNC_MARKER) -> Optional[str]:
    """Return the instance id embedded in ``text``, or None if there is no tag."""
    if not text:
        return None
    match = _tag_pattern(label).search(text)
    return match.group(1) if match else None


def strip_tag(text: Optional[str], label: str = SYNC_MARKER) -> str:
    """
    Remove the tag from ``text`` and trim surrounding whitespace.

    Only meant for content comparison, the result is never written back.
    """
    if not text:
        return ""
    return _tag_pattern(label).sub("", text).strip()


def remove_tags(text: Optional[str], label: str = SYNC_MARKER) -> str:
    """
    Drop every tag for ``label`` from ``text``, leaving the rest as written.

    Used on source descriptions that already carry a tag (a mirrored event
    copied back into the source, or chained mirrors) so the destination
    ends up with exactly one tag.
    """
    if not text:
        return ""
    if not has_tag(text, label):
        return text
    return _tag_pattern(label).sub("", text).rstrip()
