"""Pricing analyst operations on pricing requests."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pricing_desk.core.errors import ValidationFailure
from pricing_desk.core.logging import get_logger
from pricing_desk.schemas.pricing_requests import ReviewAction, ReviewDecisionPayload
from pricing_desk.services import endpoints
from pricing_desk.services.mapper import from_wire, from_wire_list

if TYPE_CHECKING:
    from pricing_desk.models.pricing_requests import PricingRequest
    from pricing_desk.models.statuses import PRStatus
    from pricing_desk.services.auth import Session
    from pricing_desk.services.transport import ApiTransport

logger = get_logger(__name__)


class AnalystRequestService:
    """Claim, review and decide pricing requests."""

    def __init__(self, transport: ApiTransport, session: Session) -> None:
        self.transport = transport
        self.session = session

    async def _list(self, path: str, pa_status: PRStatus | None) -> list[PricingRequest]:
        params = {"pa_status": pa_status.label} if pa_status is not None else None
        body = await self.transport.get(path, token=self.session.require_open(), params=params)
        return from_wire_list(body)

    async def list_available(self, pa_status: PRStatus | None = None) -> list[PricingRequest]:
        """Unassigned requests waiting for an analyst."""
        return await self._list(endpoints.ANALYST_AVAILABLE, pa_status)

    async def list_mine(self, pa_status: PRStatus | None = None) -> list[PricingRequest]:
        """Requests assigned to the caller."""
        return await self._list(endpoints.ANALYST_MINE, pa_status)

    async def get_request(self, pr_id: str) -> PricingRequest:
        body = await self.transport.get(
            endpoints.analyst_request(pr_id),
            token=self.session.require_open(),
        )
        return from_wire(body)

    async def assign(self, pr_id: str) -> PricingRequest:
        body = await self.transport.post(
            endpoints.analyst_assign(pr_id),
            token=self.session.require_open(),
        )
        logger.info("analyst.pr.assigned", extra={"pr_id": pr_id, "user_id": self.session.user_id})
        return from_wire(body)

    async def _decide(self, pr_id: str, action: ReviewAction, comment: str) -> PricingRequest:
        payload = ReviewDecisionPayload(action=action, comment=comment.strip())
        body = await self.transport.post(
            endpoints.analyst_decision(pr_id),
            token=self.session.require_open(),
            json=payload.model_dump(),
        )
        logger.info(
            "analyst.pr.decided",
            extra={"pr_id": pr_id, "action": action, "user_id": self.session.user_id},
        )
        return from_wire(body)

    async def approve(self, pr_id: str, comment: str = "") -> PricingRequest:
        return await self._decide(pr_id, "approve", comment)

    async def reject(self, pr_id: str, comment: str) -> PricingRequest:
        if not comment.strip():
            raise ValidationFailure("A comment is required to reject a pricing request")
        return await self._decide(pr_id, "reject", comment)

    async def request_action(self, pr_id: str, comment: str) -> PricingRequest:
        if not comment.strip():
            raise ValidationFailure("A comment is required to request action")
        return await self._decide(pr_id, "action_required", comment)
