"""Role workspaces pairing service calls with cache coordination.

A workspace is what a dashboard talks to: reads go through the query cache,
writes run through the mutation coordinator with the optimistic value the
lifecycle rules predict, and the server's answer replaces it on refetch.
"""

from __future__ import annotations

from dataclasses import fields, replace
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from pricing_desk.core.errors import IllegalTransitionError, ValidationFailure
from pricing_desk.core.time import utcnow
from pricing_desk.models.pricing_requests import PricingRequest, PricingRequestDraft
from pricing_desk.models.statuses import PRStatus
from pricing_desk.services import lifecycle
from pricing_desk.services.lifecycle import WorkflowAction
from pricing_desk.services.mapper import draft_to_payload
from pricing_desk.services.mutations import MutationCoordinator, OptimisticUpdate
from pricing_desk.services.query_cache import QueryCache, QueryKey

if TYPE_CHECKING:
    from collections.abc import Callable

    from pricing_desk.services.analyst import AnalystRequestService
    from pricing_desk.services.auth import Session
    from pricing_desk.services.polling import ListPoller
    from pricing_desk.services.sales import SalesRequestService

TEMP_ID_PREFIX = "temp-"

_DRAFT_FIELDS = tuple(f.name for f in fields(PricingRequestDraft))


def _temp_id() -> str:
    return f"{TEMP_ID_PREFIX}{uuid4().hex[:12]}"


def with_draft(pr: PricingRequest, draft: PricingRequestDraft) -> PricingRequest:
    """Copy the writable fields of ``draft`` onto ``pr``."""
    return replace(pr, **{name: getattr(draft, name) for name in _DRAFT_FIELDS})


def _map_list(
    pr_id: str,
    change: Callable[[PricingRequest], PricingRequest],
) -> Callable[[Any], Any]:
    def forward(current: Any) -> Any:
        return [change(pr) if pr.id == pr_id else pr for pr in current or []]

    return forward


def _drop_from_list(pr_id: str) -> Callable[[Any], Any]:
    def forward(current: Any) -> Any:
        return [pr for pr in current or [] if pr.id != pr_id]

    return forward


def _append_to_list(pr: PricingRequest) -> Callable[[Any], Any]:
    def forward(current: Any) -> Any:
        return [*(current or []), pr]

    return forward


def _map_detail(change: Callable[[PricingRequest], PricingRequest]) -> Callable[[Any], Any]:
    def forward(current: Any) -> Any:
        return change(current) if current is not None else None

    return forward


def _require_comment(comment: str, action: WorkflowAction) -> None:
    if not comment.strip():
        raise ValidationFailure(f"A comment is required to {action.value}")


class _Workspace:
    def __init__(
        self,
        session: Session,
        cache: QueryCache | None = None,
        coordinator: MutationCoordinator | None = None,
    ) -> None:
        self.session = session
        self.cache = cache or QueryCache()
        self.coordinator = coordinator or MutationCoordinator(self.cache)

    @property
    def user_id(self) -> str:
        return self.session.user_id

    def allowed_actions(self, pr: PricingRequest | None) -> frozenset[WorkflowAction]:
        return lifecycle.allowed_actions(pr, self.session.profile)

    def cached_request(self, pr_id: str) -> PricingRequest | None:
        return self.cache.peek(QueryKey.detail(pr_id))

    def _transition(
        self,
        action: WorkflowAction,
        *,
        comment: str | None = None,
        draft: PricingRequestDraft | None = None,
    ) -> Callable[[PricingRequest], PricingRequest]:
        now = utcnow()

        def change(pr: PricingRequest) -> PricingRequest:
            if draft is not None:
                pr = with_draft(pr, draft)
            try:
                return lifecycle.apply_transition(
                    pr,
                    action,
                    actor_id=self.user_id,
                    comment=comment,
                    author_role=self.session.profile.role,
                    now=now,
                )
            except IllegalTransitionError:
                # Cached state is behind the server; let the API decide.
                return pr

        return change


class SalesWorkspace(_Workspace):
    """Sales executive dashboard state and actions."""

    def __init__(
        self,
        session: Session,
        service: SalesRequestService,
        cache: QueryCache | None = None,
        coordinator: MutationCoordinator | None = None,
    ) -> None:
        super().__init__(session, cache, coordinator)
        self.service = service

    @property
    def list_key(self) -> QueryKey:
        return QueryKey.sales_list(self.user_id)

    def requests(self) -> list[PricingRequest]:
        return list(self.cache.peek(self.list_key) or [])

    def requests_in(self, status: PRStatus) -> list[PricingRequest]:
        return [pr for pr in self.requests() if pr.sales_status is status]

    async def load_requests(self) -> list[PricingRequest]:
        return await self.cache.fetch(self.list_key, self.service.list_requests)

    async def load_request(self, pr_id: str) -> PricingRequest:
        return await self.cache.fetch(
            QueryKey.detail(pr_id),
            lambda: self.service.get_request(pr_id),
        )

    def watch(self, poller: ListPoller) -> None:
        poller.watch(self.list_key, self.service.list_requests)

    def _placeholder(self, draft: PricingRequestDraft, status: PRStatus) -> PricingRequest:
        now = utcnow()
        return with_draft(
            PricingRequest(
                id=_temp_id(),
                created_by=self.user_id,
                sales_status=status,
                analyst_status=None if status is PRStatus.DRAFT else status,
                submission_date=None if status is PRStatus.DRAFT else now,
                last_updated=now,
            ),
            draft,
        )

    async def save_draft(self, draft: PricingRequestDraft) -> PricingRequest:
        draft_to_payload(draft)
        placeholder = self._placeholder(draft, PRStatus.DRAFT)
        return await self.coordinator.run(
            [OptimisticUpdate(self.list_key, _append_to_list(placeholder))],
            lambda: self.service.save_draft(draft),
        )

    async def submit_new(self, draft: PricingRequestDraft) -> PricingRequest:
        draft_to_payload(draft)
        placeholder = self._placeholder(draft, PRStatus.UNDER_REVIEW)
        return await self.coordinator.run(
            [OptimisticUpdate(self.list_key, _append_to_list(placeholder))],
            lambda: self.service.submit_new(draft),
        )

    def _updates(
        self, pr_id: str, change: Callable[[PricingRequest], PricingRequest]
    ) -> list[OptimisticUpdate]:
        return [
            OptimisticUpdate(self.list_key, _map_list(pr_id, change)),
            OptimisticUpdate(QueryKey.detail(pr_id), _map_detail(change)),
        ]

    async def submit(self, pr_id: str) -> PricingRequest:
        """Send an existing draft to the analysts."""
        return await self.coordinator.run(
            self._updates(pr_id, self._transition(WorkflowAction.SUBMIT)),
            lambda: self.service.send_to_analyst(pr_id),
        )

    async def update_draft(self, pr_id: str, draft: PricingRequestDraft) -> PricingRequest:
        draft_to_payload(draft)
        return await self.coordinator.run(
            self._updates(pr_id, lambda pr: with_draft(pr, draft)),
            lambda: self.service.update_draft(pr_id, draft),
        )

    async def resubmit(self, pr_id: str, draft: PricingRequestDraft) -> PricingRequest:
        draft_to_payload(draft)
        return await self.coordinator.run(
            self._updates(pr_id, self._transition(WorkflowAction.RESUBMIT, draft=draft)),
            lambda: self.service.resubmit(pr_id, draft),
        )

    async def delete(self, pr_id: str) -> None:
        await self.coordinator.run(
            [OptimisticUpdate(self.list_key, _drop_from_list(pr_id))],
            lambda: self.service.delete(pr_id),
        )
        self.cache.remove(QueryKey.detail(pr_id))


class AnalystWorkspace(_Workspace):
    """Pricing analyst dashboard state and actions."""

    def __init__(
        self,
        session: Session,
        service: AnalystRequestService,
        cache: QueryCache | None = None,
        coordinator: MutationCoordinator | None = None,
    ) -> None:
        super().__init__(session, cache, coordinator)
        self.service = service

    @property
    def available_key(self) -> QueryKey:
        return QueryKey.analyst_available(self.user_id)

    @property
    def mine_key(self) -> QueryKey:
        return QueryKey.analyst_mine(self.user_id)

    def available(self) -> list[PricingRequest]:
        return list(self.cache.peek(self.available_key) or [])

    def mine(self) -> list[PricingRequest]:
        return list(self.cache.peek(self.mine_key) or [])

    async def load_available(self) -> list[PricingRequest]:
        return await self.cache.fetch(self.available_key, self.service.list_available)

    async def load_mine(self) -> list[PricingRequest]:
        return await self.cache.fetch(self.mine_key, self.service.list_mine)

    async def load_request(self, pr_id: str) -> PricingRequest:
        return await self.cache.fetch(
            QueryKey.detail(pr_id),
            lambda: self.service.get_request(pr_id),
        )

    def watch(self, poller: ListPoller) -> None:
        poller.watch(self.available_key, self.service.list_available)
        poller.watch(self.mine_key, self.service.list_mine)

    async def assign(self, pr_id: str) -> PricingRequest:
        """Claim an available request; it moves from 'available' to 'mine'."""
        change = self._transition(WorkflowAction.ASSIGN)
        claimed = next((pr for pr in self.available() if pr.id == pr_id), None)
        mine_forward = (
            _append_to_list(change(claimed)) if claimed is not None else (lambda current: current)
        )
        return await self.coordinator.run(
            [
                OptimisticUpdate(self.available_key, _drop_from_list(pr_id)),
                OptimisticUpdate(self.mine_key, mine_forward),
                OptimisticUpdate(QueryKey.detail(pr_id), _map_detail(change)),
            ],
            lambda: self.service.assign(pr_id),
        )

    def _decision_updates(
        self, pr_id: str, change: Callable[[PricingRequest], PricingRequest]
    ) -> list[OptimisticUpdate]:
        return [
            OptimisticUpdate(self.mine_key, _map_list(pr_id, change)),
            OptimisticUpdate(QueryKey.detail(pr_id), _map_detail(change)),
        ]

    async def approve(self, pr_id: str, comment: str = "") -> PricingRequest:
        change = self._transition(WorkflowAction.APPROVE, comment=comment)
        return await self.coordinator.run(
            self._decision_updates(pr_id, change),
            lambda: self.service.approve(pr_id, comment),
        )

    async def reject(self, pr_id: str, comment: str) -> PricingRequest:
        _require_comment(comment, WorkflowAction.REJECT)
        change = self._transition(WorkflowAction.REJECT, comment=comment)
        return await self.coordinator.run(
            self._decision_updates(pr_id, change),
            lambda: self.service.reject(pr_id, comment),
        )

    async def request_action(self, pr_id: str, comment: str) -> PricingRequest:
        _require_comment(comment, WorkflowAction.REQUEST_ACTION)
        change = self._transition(WorkflowAction.REQUEST_ACTION, comment=comment)
        return await self.coordinator.run(
            self._decision_updates(pr_id, change),
            lambda: self.service.request_action(pr_id, comment),
        )
