"""
Slug normalization and validation.

Slugs are the human-readable identifiers that appear in public URLs. They are
normalized the same way everywhere, checked against a per-entity pattern, and
must be unique among the entities of one Year.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Callable
from typing import Any

from ..infra.exceptions import ConflictError, ValidationError

# Location slugs end with the two-digit year suffix, e.g. ``kyoto-24``.
LOCATION_SLUG_PATTERN = re.compile(r"^[a-z0-9-]+-[0-9]{2}$")
COLLECTION_SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

COLLECTION_TITLE_MAX_LENGTH = 200

_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")

SlugLookup = Callable[[str, str, str | None], bool]


def normalize(raw: str) -> str:
    """Lower-case, strip diacritics, hyphenate runs of other characters.

    ``normalize(normalize(s)) == normalize(s)`` for every string.
    """
    decomposed = unicodedata.normalize("NFKD", raw)
    ascii_only = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    hyphenated = _NON_ALNUM_RUN.sub("-", ascii_only.lower())
    return hyphenated.strip("-")


def validate_format(slug: str, pattern: re.Pattern[str], *, message: str | None = None) -> str:
    """Return ``slug`` unchanged if it matches ``pattern``.

    Raises ValidationError (field ``slug``) otherwise.
    """
    if not slug:
        raise ValidationError("Slug is required.", field="slug")
    if not pattern.fullmatch(slug):
        raise ValidationError(message or f"Slug '{slug}' has an invalid format.", field="slug")
    return slug


def ensure_unique(
    slug_taken: SlugLookup, scope_id: str, slug: str, exclude_id: str | None = None
) -> None:
    """Fail with CONFLICT when another entity in ``scope_id`` already owns ``slug``.

    ``slug_taken`` is the repository's lookup, called as
    ``slug_taken(scope_id, slug, exclude_id)``.
    """
    if slug_taken(scope_id, slug, exclude_id):
        raise ConflictError("Slug is already in use, please choose another.", field="slug")


def _clean_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def normalize_required_text(value: Any, field: str, message: str) -> str:
    text = _clean_text(value)
    if text is None:
        raise ValidationError(message, field=field)
    return text


def normalize_optional_text(value: Any) -> str | None:
    return _clean_text(value)


def _normalize_slug_input(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Slug is required.", field="slug")
    return normalize(value)


def normalize_location_slug(value: Any) -> str:
    return validate_format(
        _normalize_slug_input(value),
        LOCATION_SLUG_PATTERN,
        message=(
            "Slug must use lowercase letters, digits and hyphens and end with the "
            "two-digit year, e.g. kyoto-24."
        ),
    )


def normalize_collection_slug(value: Any) -> str:
    return validate_format(
        _normalize_slug_input(value),
        COLLECTION_SLUG_PATTERN,
        message="Slug must be lowercase letters, numbers, and hyphens only.",
    )


def parse_order_index(value: Any, *, required: bool) -> str | None:
    """Trim a client-supplied order index.

    Absent, null or blank values return ``None`` unless ``required``, in which
    case they fail with field ``orderIndex``.
    """
    if value is None:
        if required:
            raise ValidationError("Order index cannot be blank.", field="orderIndex")
        return None
    if not isinstance(value, str):
        raise ValidationError("Order index must be a string.", field="orderIndex")
    trimmed = value.strip()
    if not trimmed:
        if required:
            raise ValidationError("Order index cannot be blank.", field="orderIndex")
        return None
    return trimmed
