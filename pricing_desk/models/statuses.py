"""Closed status vocabulary for the pricing request lifecycle.

Status strings arrive from the API in several spellings (``ACTIVE_STATUS``,
``Active Status``, ``active status``). They are canonicalized exactly once,
when a wire record is mapped into the domain; code past that point compares
enum members only.
"""

from __future__ import annotations

import re
from enum import Enum


class PRStatus(str, Enum):
    """Lifecycle states shared by the sales and analyst status tracks."""

    DRAFT = "draft"
    UNDER_REVIEW = "under_review"
    ACTIVE_STATUS = "active_status"
    ACTION_REQUIRED = "action_required"
    APPROVED = "approved"
    REJECTED = "rejected"
    CLOSED = "closed"
    # Default display bucket for anything the API sends that we do not know.
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return self in {PRStatus.CLOSED, PRStatus.UNKNOWN}


class FinalOutcome(str, Enum):
    """Outcome frozen onto a request when it closes."""

    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class UserRole(str, Enum):
    """The two roles that act on pricing requests."""

    SALES_EXECUTIVE = "SE"
    PRICING_ANALYST = "PA"


_LABELS: dict[PRStatus, str] = {
    PRStatus.DRAFT: "Draft",
    PRStatus.UNDER_REVIEW: "Under Review",
    PRStatus.ACTIVE_STATUS: "Active Status",
    PRStatus.ACTION_REQUIRED: "Action Required",
    PRStatus.APPROVED: "Approved",
    PRStatus.REJECTED: "Rejected",
    PRStatus.CLOSED: "Closed",
    PRStatus.UNKNOWN: "Unknown",
}

_SEPARATORS = re.compile(r"[\s_\-]+")

_ALIASES: dict[str, PRStatus] = {
    "active": PRStatus.ACTIVE_STATUS,
    "assigned": PRStatus.ACTIVE_STATUS,
    "submitted": PRStatus.UNDER_REVIEW,
}

_ROLE_ALIASES: dict[str, UserRole] = {
    "se": UserRole.SALES_EXECUTIVE,
    "sales": UserRole.SALES_EXECUTIVE,
    "sales_executive": UserRole.SALES_EXECUTIVE,
    "pa": UserRole.PRICING_ANALYST,
    "analyst": UserRole.PRICING_ANALYST,
    "pricing_analyst": UserRole.PRICING_ANALYST,
}


def _status_token(raw: str) -> str:
    return _SEPARATORS.sub("_", raw.strip().lower()).strip("_")


def canonicalize_status(raw: object) -> PRStatus | None:
    """Map a wire status string onto the closed enum.

    ``None`` and blank strings mean "not set" and return ``None``; any other
    unrecognized value lands in ``PRStatus.UNKNOWN`` rather than raising.
    """
    if raw is None:
        return None
    if isinstance(raw, PRStatus):
        return raw
    if not isinstance(raw, str):
        return PRStatus.UNKNOWN
    token = _status_token(raw)
    if not token:
        return None
    try:
        return PRStatus(token)
    except ValueError:
        return _ALIASES.get(token, PRStatus.UNKNOWN)


def canonicalize_outcome(raw: object) -> FinalOutcome | None:
    if raw is None:
        return None
    if isinstance(raw, FinalOutcome):
        return raw
    if not isinstance(raw, str):
        return None
    token = _status_token(raw)
    try:
        return FinalOutcome(token)
    except ValueError:
        return None


def canonicalize_role(raw: object) -> UserRole | None:
    if isinstance(raw, UserRole):
        return raw
    if not isinstance(raw, str):
        return None
    return _ROLE_ALIASES.get(_status_token(raw))
