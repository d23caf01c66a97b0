"""Badge version normalization and persistence"""

import logging
import re

from badgepress.badges.stores import ContentStore
from badgepress.config import settings

logger = logging.getLogger(__name__)

VERSION_META_KEY = "badgepress-badge-version"

_MAJOR_ONLY_RE = re.compile(r"^[0-9]+$")
_DOTTED_RE = re.compile(r"^[0-9]+(\.[0-9]+)+$")


def normalize_version(value: str | None, default: str | None = None) -> str:
    """Canonicalize a submitted version.

    "3" -> "3.0", "2.1.4" stays, anything else becomes the default ("1.0").
    """
    default = default or settings.BADGE_DEFAULT_VERSION
    value = value or ""
    # fullmatch so a trailing newline does not sneak through `$`
    if _MAJOR_ONLY_RE.fullmatch(value):
        return f"{value}.0"
    if _DOTTED_RE.fullmatch(value):
        return value
    return default


def persist_version(store: ContentStore, record_id: int, new_value: str) -> str:
    """Store a normalized version against the previous one.

    Returns the action taken: "added", "updated", "deleted" or "unchanged".
    Removal is by key, never by matching the old value.
    """
    current = store.get_meta(record_id, VERSION_META_KEY) or ""

    if new_value and not current:
        store.set_meta(record_id, VERSION_META_KEY, new_value)
        action = "added"
    elif new_value and new_value != current:
        store.set_meta(record_id, VERSION_META_KEY, new_value)
        action = "updated"
    elif not new_value and current:
        store.delete_meta(record_id, VERSION_META_KEY)
        action = "deleted"
    else:
        action = "unchanged"

    logger.debug("Badge %s version %s (%r -> %r)", record_id, action, current, new_value)
    return action
