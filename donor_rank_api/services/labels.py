"""Donor label normalization for leaderboards."""

import re
from collections.abc import Callable, Iterable
from typing import Any

from donor_rank_api.config import get_settings
from donor_rank_api.models.organization import LabelMode

LABEL_FRIENDS = "Friends"
LABEL_PARENTS = "Parents"

_FRIENDS_RE = re.compile(r"^friends?$|друзья", re.IGNORECASE)
_PARENTS_RE = re.compile(r"^(parents?|родители)$", re.IGNORECASE)
_COHORT_RE = re.compile(r"^(?:class\s+of|выпуск)\s+(\d{4})\s*(?:г\.?)?$", re.IGNORECASE)
_YEAR_RE = re.compile(r"^\d{4}$")

LabelNormalizer = Callable[[Any], str | None]


def cohort_label(year: str) -> str:
    return f"Class of {year}"


def is_placeholder(label: str, placeholders: Iterable[str] | None = None) -> bool:
    """Whether a trimmed label is blank or a name the legacy importer used for 'no name'."""
    if not label:
        return True
    if placeholders is None:
        placeholders = get_settings().import_placeholder_labels
    folded = label.casefold()
    return any(folded == placeholder.strip().casefold() for placeholder in placeholders)


def normalize_donor_label(
        raw: Any,
        anonymous_label: str | None = None,
        placeholders: Iterable[str] | None = None,
) -> str | None:
    """Map a free-text donor name onto the label shown on leaderboards.

    Blank and placeholder names collapse into the anonymous label so anonymous
    donations aggregate as one bucket. ``None`` is returned only for values
    that are not names at all (non-string import artifacts), which callers
    drop from the leaderboard.
    """
    if raw is not None and not isinstance(raw, str):
        return None
    if anonymous_label is None:
        anonymous_label = get_settings().anonymous_label

    label = (raw or "").strip()
    if is_placeholder(label, placeholders):
        return anonymous_label
    return label


def normalize_cohort_label(raw: Any, placeholders: Iterable[str] | None = None) -> str | None:
    """Map a label onto a graduating-class / friends / parents label.

    Anything that is not a cohort, anonymous donations included, returns
    ``None`` and is left out of cohort leaderboards.
    """
    if not isinstance(raw, str):
        return None
    label = raw.strip()
    if is_placeholder(label, placeholders):
        return None

    if _FRIENDS_RE.search(label):
        return LABEL_FRIENDS
    if _PARENTS_RE.match(label):
        return LABEL_PARENTS
    match = _COHORT_RE.match(label)
    if match:
        return cohort_label(match.group(1))
    if _YEAR_RE.match(label):
        return cohort_label(label)
    return None


def label_normalizer_for(mode: str) -> LabelNormalizer:
    """Pick the normalizer for an organization's leaderboard label mode."""
    if mode == LabelMode.COHORT:
        return normalize_cohort_label
    return normalize_donor_label
