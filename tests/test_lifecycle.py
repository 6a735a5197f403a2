# ruff: noqa: INP001
"""Lifecycle table, guards and optimistic post-states."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from pricing_desk.core.errors import IllegalTransitionError, ValidationFailure
from pricing_desk.models.pricing_requests import Comment, PricingRequest
from pricing_desk.models.statuses import FinalOutcome, PRStatus, UserRole
from pricing_desk.models.users import UserProfile
from pricing_desk.services import lifecycle
from pricing_desk.services.lifecycle import WorkflowAction
from pricing_desk.services.mapper import from_wire

SALES = UserProfile(id="se-1", username="sam", email="sam@x.io", role=UserRole.SALES_EXECUTIVE)
OTHER_SALES = UserProfile(
    id="se-2", username="sue", email="sue@x.io", role=UserRole.SALES_EXECUTIVE
)
ANALYST = UserProfile(id="pa-1", username="ann", email="ann@x.io", role=UserRole.PRICING_ANALYST)
OTHER_ANALYST = UserProfile(
    id="pa-2", username="bob", email="bob@x.io", role=UserRole.PRICING_ANALYST
)
NOW = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)


def _pr(
    sales: PRStatus,
    analyst: PRStatus | None = None,
    *,
    assigned_to: str | None = None,
    **kwargs: object,
) -> PricingRequest:
    return PricingRequest(
        id="pr-1",
        created_by=SALES.id,
        sales_status=sales,
        analyst_status=analyst,
        assigned_to=assigned_to,
        **kwargs,
    )


def test_draft_offers_only_submit_edit_delete_to_owner() -> None:
    draft = _pr(PRStatus.DRAFT)
    assert lifecycle.allowed_actions(draft, SALES) == {
        WorkflowAction.SUBMIT,
        WorkflowAction.EDIT,
        WorkflowAction.DELETE,
    }
    assert lifecycle.allowed_actions(draft, OTHER_SALES) == frozenset()
    assert lifecycle.allowed_actions(draft, ANALYST) == frozenset()


def test_new_request_can_be_saved_or_submitted_by_sales_only() -> None:
    assert lifecycle.allowed_actions(None, SALES) == {
        WorkflowAction.SAVE_DRAFT,
        WorkflowAction.SUBMIT,
    }
    assert lifecycle.allowed_actions(None, ANALYST) == frozenset()


def test_under_review_can_be_claimed_once() -> None:
    open_pr = _pr(PRStatus.UNDER_REVIEW, PRStatus.UNDER_REVIEW)
    assert lifecycle.allowed_actions(open_pr, ANALYST) == {WorkflowAction.ASSIGN}
    assert lifecycle.allowed_actions(open_pr, SALES) == frozenset()

    claimed = _pr(PRStatus.UNDER_REVIEW, PRStatus.UNDER_REVIEW, assigned_to=ANALYST.id)
    assert lifecycle.allowed_actions(claimed, OTHER_ANALYST) == frozenset()


def test_decisions_belong_to_the_assignee() -> None:
    active = _pr(PRStatus.ACTIVE_STATUS, PRStatus.ACTIVE_STATUS, assigned_to=ANALYST.id)
    assert lifecycle.allowed_actions(active, ANALYST) == {
        WorkflowAction.APPROVE,
        WorkflowAction.REJECT,
        WorkflowAction.REQUEST_ACTION,
    }
    assert lifecycle.allowed_actions(active, OTHER_ANALYST) == frozenset()
    with pytest.raises(IllegalTransitionError):
        lifecycle.check_transition(active, WorkflowAction.APPROVE, OTHER_ANALYST)


@pytest.mark.parametrize("spelling", ["ACTIVE_STATUS", "Active Status", "active status"])
def test_status_spelling_does_not_change_offered_actions(spelling: str) -> None:
    pr = from_wire(
        {
            "id": "pr-9",
            "created_by": SALES.id,
            "sales_status": spelling,
            "analyst_status": spelling,
            "assigned_to": ANALYST.id,
        }
    )
    assert pr.effective_status is PRStatus.ACTIVE_STATUS
    assert lifecycle.allowed_actions(pr, ANALYST) == {
        WorkflowAction.APPROVE,
        WorkflowAction.REJECT,
        WorkflowAction.REQUEST_ACTION,
    }


@pytest.mark.parametrize("status", [PRStatus.CLOSED, PRStatus.UNKNOWN])
def test_closed_and_unknown_offer_nothing(status: PRStatus) -> None:
    pr = _pr(status, status, assigned_to=ANALYST.id)
    assert lifecycle.transitions_from(status) == ()
    assert lifecycle.allowed_actions(pr, SALES) == frozenset()
    assert lifecycle.allowed_actions(pr, ANALYST) == frozenset()


def test_closed_on_either_track_wins() -> None:
    pr = _pr(PRStatus.APPROVED, PRStatus.CLOSED, assigned_to=ANALYST.id)
    assert pr.effective_status is PRStatus.CLOSED


def test_action_required_returns_to_owner() -> None:
    pr = _pr(PRStatus.ACTION_REQUIRED, PRStatus.ACTION_REQUIRED, assigned_to=ANALYST.id)
    assert lifecycle.allowed_actions(pr, SALES) == {WorkflowAction.EDIT, WorkflowAction.RESUBMIT}
    assert lifecycle.allowed_actions(pr, ANALYST) == frozenset()


@pytest.mark.parametrize("action", [WorkflowAction.REJECT, WorkflowAction.REQUEST_ACTION])
@pytest.mark.parametrize("comment", [None, "", "   "])
def test_reject_and_request_action_need_a_comment(
    action: WorkflowAction, comment: str | None
) -> None:
    active = _pr(PRStatus.ACTIVE_STATUS, PRStatus.ACTIVE_STATUS, assigned_to=ANALYST.id)
    with pytest.raises(ValidationFailure):
        lifecycle.check_transition(active, action, ANALYST, comment=comment)


def test_check_transition_rejects_unknown_row() -> None:
    with pytest.raises(IllegalTransitionError, match="Closed"):
        lifecycle.check_transition(_pr(PRStatus.CLOSED), WorkflowAction.EDIT, SALES)


def test_submit_mirrors_both_tracks() -> None:
    after = lifecycle.apply_transition(_pr(PRStatus.DRAFT), WorkflowAction.SUBMIT, now=NOW)
    assert after.sales_status is PRStatus.UNDER_REVIEW
    assert after.analyst_status is PRStatus.UNDER_REVIEW
    assert after.submission_date == NOW
    assert after.last_updated == NOW


def test_assign_records_assignee() -> None:
    pr = _pr(PRStatus.UNDER_REVIEW, PRStatus.UNDER_REVIEW)
    after = lifecycle.apply_transition(pr, WorkflowAction.ASSIGN, actor_id=ANALYST.id, now=NOW)
    assert after.assigned_to == ANALYST.id
    assert after.effective_status is PRStatus.ACTIVE_STATUS


def test_reject_sets_final_outcome_and_appends_comment() -> None:
    pr = _pr(PRStatus.ACTIVE_STATUS, PRStatus.ACTIVE_STATUS, assigned_to=ANALYST.id)
    after = lifecycle.apply_transition(
        pr,
        WorkflowAction.REJECT,
        actor_id=ANALYST.id,
        comment="  rate too low ",
        author_role=UserRole.PRICING_ANALYST,
        now=NOW,
    )
    assert after.final_approval_status is FinalOutcome.REJECTED
    assert after.latest_comment == Comment(
        text="rate too low",
        author_role=UserRole.PRICING_ANALYST,
        author_id=ANALYST.id,
        created_at=NOW,
    )
    assert pr.comments == ()


def test_final_outcome_is_never_overwritten() -> None:
    pr = _pr(
        PRStatus.ACTIVE_STATUS,
        PRStatus.ACTIVE_STATUS,
        assigned_to=ANALYST.id,
        final_approval_status=FinalOutcome.REJECTED,
    )
    after = lifecycle.apply_transition(pr, WorkflowAction.APPROVE, actor_id=ANALYST.id)
    assert after.final_approval_status is FinalOutcome.REJECTED
    assert after.sales_status is PRStatus.APPROVED


def test_resubmit_clears_assignment() -> None:
    pr = _pr(PRStatus.ACTION_REQUIRED, PRStatus.ACTION_REQUIRED, assigned_to=ANALYST.id)
    after = lifecycle.apply_transition(pr, WorkflowAction.RESUBMIT, now=NOW)
    assert after.assigned_to is None
    assert after.effective_status is PRStatus.UNDER_REVIEW
    assert lifecycle.allowed_actions(after, OTHER_ANALYST) == {WorkflowAction.ASSIGN}


def test_apply_transition_refuses_closed() -> None:
    with pytest.raises(IllegalTransitionError):
        lifecycle.apply_transition(_pr(PRStatus.CLOSED, PRStatus.CLOSED), WorkflowAction.APPROVE)


def test_closed_outcome_prefers_explicit_field() -> None:
    pr = _pr(
        PRStatus.CLOSED,
        PRStatus.APPROVED,
        final_approval_status=FinalOutcome.REJECTED,
    )
    assert lifecycle.resolve_closed_outcome(pr) is FinalOutcome.REJECTED


def test_closed_outcome_falls_back_to_analyst_track() -> None:
    assert lifecycle.resolve_closed_outcome(_pr(PRStatus.CLOSED, PRStatus.APPROVED)) is (
        FinalOutcome.APPROVED
    )


def test_closed_outcome_ignores_comment_text() -> None:
    pr = _pr(
        PRStatus.CLOSED,
        PRStatus.CLOSED,
        comments=(Comment(text="Rejected: rates outdated"),),
    )
    assert lifecycle.resolve_closed_outcome(pr) is None
