"""Pricing request lifecycle: legal transitions, guards and expected outcomes.

The API is the authority on every transition. The rules here decide which
controls a caller should be offered and compute the post-transition shape
used for optimistic cache updates; they never replace the server check.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING

from pricing_desk.core.errors import IllegalTransitionError, ValidationFailure
from pricing_desk.core.time import utcnow
from pricing_desk.models.pricing_requests import Comment, PricingRequest
from pricing_desk.models.statuses import FinalOutcome, PRStatus, UserRole

if TYPE_CHECKING:
    from datetime import datetime

    from pricing_desk.models.users import UserProfile


class WorkflowAction(str, Enum):
    """Operations that move a pricing request through its lifecycle."""

    SAVE_DRAFT = "save_draft"
    SUBMIT = "submit"
    EDIT = "edit"
    DELETE = "delete"
    ASSIGN = "assign"
    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_ACTION = "request_action"
    RESUBMIT = "resubmit"
    CLOSE = "close"


class Actor(str, Enum):
    SALES = "sales"
    ANALYST = "analyst"
    # The API closes decided requests on its own.
    SYSTEM = "system"


@dataclass(frozen=True)
class Transition:
    """One row of the lifecycle table."""

    source: PRStatus | None
    action: WorkflowAction
    actor: Actor
    target: PRStatus | None
    owner_only: bool = False
    assignee_only: bool = False
    requires_unassigned: bool = False
    requires_comment: bool = False


TRANSITIONS: tuple[Transition, ...] = (
    Transition(None, WorkflowAction.SAVE_DRAFT, Actor.SALES, PRStatus.DRAFT),
    Transition(None, WorkflowAction.SUBMIT, Actor.SALES, PRStatus.UNDER_REVIEW),
    Transition(
        PRStatus.DRAFT, WorkflowAction.SUBMIT, Actor.SALES, PRStatus.UNDER_REVIEW, owner_only=True
    ),
    Transition(PRStatus.DRAFT, WorkflowAction.EDIT, Actor.SALES, PRStatus.DRAFT, owner_only=True),
    Transition(PRStatus.DRAFT, WorkflowAction.DELETE, Actor.SALES, None, owner_only=True),
    Transition(
        PRStatus.UNDER_REVIEW,
        WorkflowAction.ASSIGN,
        Actor.ANALYST,
        PRStatus.ACTIVE_STATUS,
        requires_unassigned=True,
    ),
    Transition(
        PRStatus.ACTIVE_STATUS,
        WorkflowAction.APPROVE,
        Actor.ANALYST,
        PRStatus.APPROVED,
        assignee_only=True,
    ),
    Transition(
        PRStatus.ACTIVE_STATUS,
        WorkflowAction.REJECT,
        Actor.ANALYST,
        PRStatus.REJECTED,
        assignee_only=True,
        requires_comment=True,
    ),
    Transition(
        PRStatus.ACTIVE_STATUS,
        WorkflowAction.REQUEST_ACTION,
        Actor.ANALYST,
        PRStatus.ACTION_REQUIRED,
        assignee_only=True,
        requires_comment=True,
    ),
    Transition(
        PRStatus.ACTION_REQUIRED,
        WorkflowAction.EDIT,
        Actor.SALES,
        PRStatus.ACTION_REQUIRED,
        owner_only=True,
    ),
    Transition(
        PRStatus.ACTION_REQUIRED,
        WorkflowAction.RESUBMIT,
        Actor.SALES,
        PRStatus.UNDER_REVIEW,
        owner_only=True,
    ),
    Transition(PRStatus.APPROVED, WorkflowAction.CLOSE, Actor.SYSTEM, PRStatus.CLOSED),
    Transition(PRStatus.REJECTED, WorkflowAction.CLOSE, Actor.SYSTEM, PRStatus.CLOSED),
)

_BY_KEY: dict[tuple[PRStatus | None, WorkflowAction], Transition] = {
    (transition.source, transition.action): transition for transition in TRANSITIONS
}

_DECISION_OUTCOMES = {
    PRStatus.APPROVED: FinalOutcome.APPROVED,
    PRStatus.REJECTED: FinalOutcome.REJECTED,
}


def actor_for(profile: UserProfile) -> Actor:
    return Actor.SALES if profile.role is UserRole.SALES_EXECUTIVE else Actor.ANALYST


def transitions_from(status: PRStatus | None) -> tuple[Transition, ...]:
    return tuple(t for t in TRANSITIONS if t.source is status)


def find_transition(status: PRStatus | None, action: WorkflowAction) -> Transition | None:
    return _BY_KEY.get((status, action))


def _guard_failure(
    transition: Transition,
    pr: PricingRequest | None,
    user: UserProfile,
) -> str | None:
    if actor_for(user) is not transition.actor:
        return f"{transition.action.value} is not available to this role"
    if pr is None:
        return None
    if transition.owner_only and pr.created_by != user.id:
        return "Only the creator can perform this action"
    if transition.assignee_only and pr.assigned_to != user.id:
        return "Only the assigned analyst can perform this action"
    if transition.requires_unassigned and pr.is_assigned:
        return "Pricing request is already assigned"
    return None


def allowed_actions(pr: PricingRequest | None, user: UserProfile) -> frozenset[WorkflowAction]:
    """Actions ``user`` should be offered for ``pr`` (``None`` = not yet created)."""
    status = pr.effective_status if pr is not None else None
    return frozenset(
        transition.action
        for transition in transitions_from(status)
        if _guard_failure(transition, pr, user) is None
    )


def check_transition(
    pr: PricingRequest | None,
    action: WorkflowAction,
    user: UserProfile,
    *,
    comment: str | None = None,
) -> Transition:
    """Return the matching transition or raise ``IllegalTransitionError``."""
    status = pr.effective_status if pr is not None else None
    transition = find_transition(status, action)
    if transition is None:
        label = status.label if status is not None else "new"
        raise IllegalTransitionError(f"Cannot {action.value} a pricing request in state {label}")
    failure = _guard_failure(transition, pr, user)
    if failure is not None:
        raise IllegalTransitionError(failure)
    if transition.requires_comment and not (comment or "").strip():
        raise ValidationFailure(f"A comment is required to {action.value}")
    return transition


def _tracks_for(target: PRStatus) -> tuple[PRStatus, PRStatus | None]:
    if target is PRStatus.DRAFT:
        return PRStatus.DRAFT, None
    return target, target


def apply_transition(
    pr: PricingRequest,
    action: WorkflowAction,
    *,
    actor_id: str | None = None,
    comment: str | None = None,
    author_role: UserRole | None = None,
    now: datetime | None = None,
) -> PricingRequest:
    """Expected post-transition request, used as the optimistic cache value.

    Raises ``IllegalTransitionError`` when ``action`` has no row for the
    request's current state; guards are not evaluated here.
    """
    status = pr.effective_status
    transition = find_transition(status, action)
    if transition is None or transition.target is None:
        msg = f"Cannot {action.value} a pricing request in state {status.label}"
        raise IllegalTransitionError(msg)

    now = now or utcnow()
    sales_status, analyst_status = _tracks_for(transition.target)
    changes: dict[str, object] = {
        "sales_status": sales_status,
        "analyst_status": analyst_status,
        "last_updated": now,
    }
    if action is WorkflowAction.ASSIGN:
        changes["assigned_to"] = actor_id
    elif action is WorkflowAction.RESUBMIT:
        changes["assigned_to"] = None
    if action in {WorkflowAction.SUBMIT, WorkflowAction.RESUBMIT}:
        changes["submission_date"] = now
    outcome = _DECISION_OUTCOMES.get(transition.target)
    if outcome is not None and pr.final_approval_status is None:
        changes["final_approval_status"] = outcome
    if comment and comment.strip():
        changes["comments"] = (
            *pr.comments,
            Comment(
                text=comment.strip(),
                author_role=author_role,
                author_id=actor_id,
                created_at=now,
            ),
        )
    return replace(pr, **changes)


def resolve_closed_outcome(pr: PricingRequest) -> FinalOutcome | None:
    """Outcome to display for a request; ``None`` is the neutral bucket.

    The explicit ``final_approval_status`` wins; otherwise an analyst track
    that still reads Approved/Rejected is used. Comment text is not inspected.
    """
    if pr.final_approval_status is not None:
        return pr.final_approval_status
    if pr.analyst_status is not None:
        return _DECISION_OUTCOMES.get(pr.analyst_status)
    return None
