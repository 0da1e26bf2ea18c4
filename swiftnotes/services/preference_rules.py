"""
Rules for the user preference document.

The document is an open JSON object. A handful of well-known keys have a
validated domain and a default that is applied when the document is read;
any other key is stored untouched so newer clients can add settings without
a schema change.
"""
import json
from typing import Any, Callable, Dict, Mapping, Optional

from swiftnotes.exceptions import ValidationError
from swiftnotes.logging_config import get_logger

logger = get_logger(__name__)

TONE_LEVEL_MIN = 0
TONE_LEVEL_MAX = 100
DETAIL_LEVELS = ("brief", "moderate", "detailed", "comprehensive")

DEFAULT_PREFERENCES: Dict[str, Any] = {
    "defaultToneLevel": 50,
    "defaultDetailLevel": "detailed",
    "emailNotifications": True,
    "weeklyReports": False,
    "useTimePatterns": False,
}

# Legacy rows were encoded more than once; never unwrap deeper than this
_MAX_DECODE_DEPTH = 5


def _check_tone_level(value: Any) -> Optional[str]:
    # bool is an int subclass, but True is not a slider position
    if isinstance(value, bool) or not isinstance(value, int):
        return "must be an integer between 0 and 100"
    if not TONE_LEVEL_MIN <= value <= TONE_LEVEL_MAX:
        return "must be an integer between 0 and 100"
    return None


def _check_detail_level(value: Any) -> Optional[str]:
    if value not in DETAIL_LEVELS:
        return "must be one of: " + ", ".join(DETAIL_LEVELS)
    return None


def _check_flag(value: Any) -> Optional[str]:
    if not isinstance(value, bool):
        return "must be a boolean"
    return None


VALIDATORS: Dict[str, Callable[[Any], Optional[str]]] = {
    "defaultToneLevel": _check_tone_level,
    "defaultDetailLevel": _check_detail_level,
    "emailNotifications": _check_flag,
    "weeklyReports": _check_flag,
    "useTimePatterns": _check_flag,
}


def validate_patch(patch: Mapping[str, Any]) -> None:
    """
    Validate every known key of a partial update.

    Raises ValidationError naming all offending keys at once. Unknown keys
    are accepted as-is.
    """
    errors: Dict[str, str] = {}
    for key, value in patch.items():
        if not isinstance(key, str) or not key:
            errors[str(key)] = "preference keys must be non-empty strings"
            continue
        check = VALIDATORS.get(key)
        if check is None:
            continue
        reason = check(value)
        if reason:
            errors[key] = reason
    if errors:
        raise ValidationError(errors)


def merge_preferences(stored: Mapping[str, Any], patch: Mapping[str, Any]) -> Dict[str, Any]:
    """Overwrite exactly the keys in ``patch``; every other stored key is kept."""
    merged = dict(stored)
    merged.update(patch)
    return merged


def normalize_stored(raw: Any) -> Dict[str, Any]:
    """
    Decode a stored preferences value into its object form.

    Handles NULL, JSON text, and values that were JSON-encoded one or more
    times before being written (e.g. the literal string ``"{}"``). Anything
    that does not end up as an object is treated as an empty document.
    """
    value = raw
    for _ in range(_MAX_DECODE_DEPTH):
        if not isinstance(value, (str, bytes)):
            break
        try:
            value = json.loads(value)
        except ValueError:
            logger.warning("Discarding unparseable stored preferences")
            return {}
    if isinstance(value, dict):
        return dict(value)
    if value is not None:
        logger.warning(f"Discarding stored preferences of type {type(value).__name__}")
    return {}


def is_canonical(raw: Any) -> bool:
    """True when a stored value is already a plain object (no repair needed)."""
    return isinstance(raw, dict)


def apply_defaults(document: Mapping[str, Any]) -> Dict[str, Any]:
    """Fill in defaults for missing well-known keys; stored values win."""
    result = dict(DEFAULT_PREFERENCES)
    for key, value in document.items():
        # legacy rows may hold null for a known key
        if value is None and key in DEFAULT_PREFERENCES:
            continue
        result[key] = value
    return result


def default_preferences() -> Dict[str, Any]:
    return dict(DEFAULT_PREFERENCES)
