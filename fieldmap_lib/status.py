# -*- coding: utf-8 -*-
"""Status normalization for entities and maintenance tasks.

Statuses arrive from the backend and from field devices in many spellings
(``"Needs-Replacement"``, ``"needsreplacement"``, ``"Diseased"`` ...). Every
comparison in the library goes through :func:`normalize_status` first:

1. lower-case and strip
2. fold spaces and hyphens to underscores
3. apply explicit aliases
4. an empty value means ``healthy``
"""

from __future__ import annotations

import datetime

from fieldmap_lib.enums import EntityStatus
from fieldmap_lib.enums import StatusCategory

#: Spellings folded onto a canonical status key
STATUS_ALIASES: dict[str, str] = {
    "deseas": EntityStatus.DISEASE.value,
    "diseased": EntityStatus.DISEASE.value,
    "needreplacement": EntityStatus.NEED_REPLACEMENT.value,
    "needsreplacement": EntityStatus.NEED_REPLACEMENT.value,
    "needs_replacement": EntityStatus.NEED_REPLACEMENT.value,
}

HEALTHY_STATUSES: frozenset[str] = frozenset(
    {EntityStatus.ALIVE.value, EntityStatus.HEALTHY.value}
)

DEAD_STATUSES: frozenset[str] = frozenset(
    {EntityStatus.DEAD.value, EntityStatus.REMOVED.value}
)

ATTENTION_STATUSES: frozenset[str] = frozenset(
    {
        EntityStatus.NEEDS_ATTENTION.value,
        EntityStatus.PEST.value,
        EntityStatus.DISEASE.value,
        EntityStatus.NEED_REPLACEMENT.value,
        EntityStatus.DAMAGED.value,
        EntityStatus.NEED_WATERING.value,
        EntityStatus.NEED_PROTECTION.value,
    }
)

PENDING_STATUSES: frozenset[str] = frozenset({EntityStatus.PENDING_PLANTING.value})

#: Task statuses meaning the work was carried out
DONE_TASK_STATES: frozenset[str] = frozenset({"done", "completed", "closed"})

#: Review states under which a carried-out task counts as done
ACCEPTED_REVIEW_STATES: frozenset[str] = frozenset({"approved", "none"})


def normalize_status(value: str | None) -> str:
    """Normalize a raw entity status to its canonical key.

    Unknown statuses are folded but otherwise kept, so that a status added
    upstream still renders (with the default palette).

    Examples:
        >>> normalize_status("Needs-Replacement")
        'need_replacement'
        >>> normalize_status(None)
        'healthy'
    """
    raw = (value or "").strip().lower().replace("-", "_").replace(" ", "_")
    raw = STATUS_ALIASES.get(raw, raw)
    return raw or EntityStatus.HEALTHY.value


def parse_status(value: str | None) -> EntityStatus:
    """Normalize a raw status and map it onto the closed vocabulary.

    Raises:
        ValueError: If the normalized key is not a known status
    """
    key = normalize_status(value)
    try:
        return EntityStatus(key)
    except ValueError:
        raise ValueError(f"Unknown entity status: {value!r}") from None


def status_label(value: str | None) -> str:
    """Human label: the status key split on ``_``, each word capitalized."""
    words = [part for part in normalize_status(value).split("_") if part]
    return " ".join(word[0].upper() + word[1:] for word in words) or "Healthy"


def is_active_status(value: str | None) -> bool:
    """Whether a status is healthy-like (drawn with a secondary halo)."""
    return normalize_status(value) in HEALTHY_STATUSES


def status_category(value: str | None) -> StatusCategory:
    """Visual category of a status. Unknown statuses render as healthy."""
    key = normalize_status(value)
    if key in DEAD_STATUSES:
        return StatusCategory.DEAD
    if key in ATTENTION_STATUSES:
        return StatusCategory.ATTENTION
    if key in PENDING_STATUSES:
        return StatusCategory.PENDING
    return StatusCategory.HEALTHY


# -----------------------------------------------------------------------------
# Maintenance tasks
# -----------------------------------------------------------------------------


def normalize_task_state(value: str | None) -> str:
    return (value or "").strip().lower()


def is_task_done(status: str | None, review_state: str | None = None) -> bool:
    """Whether a task counts as done.

    A carried-out task only counts once its review is approved. Tasks that
    predate the review workflow (review state ``none`` or missing) count
    as done as soon as their status says so.
    """
    if normalize_task_state(status) not in DONE_TASK_STATES:
        return False
    review = normalize_task_state(review_state) or "none"
    return review in ACCEPTED_REVIEW_STATES


def is_task_overdue(
    status: str | None,
    review_state: str | None,
    due_date: datetime.date | None,
    today: datetime.date,
) -> bool:
    """Whether a task is not done and its due date has passed."""
    if due_date is None or is_task_done(status, review_state):
        return False
    return due_date < today
