"""Sales executive operations on pricing requests."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pricing_desk.core.logging import get_logger
from pricing_desk.services import endpoints
from pricing_desk.services.mapper import draft_to_payload, from_wire, from_wire_list

if TYPE_CHECKING:
    from pricing_desk.models.pricing_requests import PricingRequest, PricingRequestDraft
    from pricing_desk.models.statuses import PRStatus
    from pricing_desk.services.auth import Session
    from pricing_desk.services.transport import ApiTransport

logger = get_logger(__name__)


class SalesRequestService:
    """Create, edit, submit and delete the caller's own pricing requests."""

    def __init__(self, transport: ApiTransport, session: Session) -> None:
        self.transport = transport
        self.session = session

    async def list_requests(self, sales_status: PRStatus | None = None) -> list[PricingRequest]:
        params = {"sales_status": sales_status.label} if sales_status is not None else None
        body = await self.transport.get(
            endpoints.SALES_LIST,
            token=self.session.require_open(),
            params=params,
        )
        return from_wire_list(body)

    async def get_request(self, pr_id: str) -> PricingRequest:
        body = await self.transport.get(
            endpoints.sales_request(pr_id),
            token=self.session.require_open(),
        )
        return from_wire(body)

    async def save_draft(self, draft: PricingRequestDraft) -> PricingRequest:
        payload = draft_to_payload(draft)
        body = await self.transport.post(
            endpoints.SALES_SAVE,
            token=self.session.require_open(),
            json=payload.model_dump(mode="json"),
        )
        pr = from_wire(body)
        logger.info("sales.pr.saved", extra={"pr_id": pr.id, "user_id": self.session.user_id})
        return pr

    async def submit_new(self, draft: PricingRequestDraft) -> PricingRequest:
        payload = draft_to_payload(draft)
        body = await self.transport.post(
            endpoints.SALES_SUBMIT,
            token=self.session.require_open(),
            json=payload.model_dump(mode="json"),
        )
        pr = from_wire(body)
        logger.info("sales.pr.submitted", extra={"pr_id": pr.id, "user_id": self.session.user_id})
        return pr

    async def update_draft(self, pr_id: str, draft: PricingRequestDraft) -> PricingRequest:
        payload = draft_to_payload(draft)
        body = await self.transport.put(
            endpoints.sales_request(pr_id),
            token=self.session.require_open(),
            json=payload.model_dump(mode="json"),
        )
        return from_wire(body)

    async def send_to_analyst(self, pr_id: str) -> PricingRequest:
        """Submit an existing draft for review."""
        body = await self.transport.post(
            endpoints.sales_send_to_analyst(pr_id),
            token=self.session.require_open(),
        )
        logger.info("sales.pr.submitted", extra={"pr_id": pr_id, "user_id": self.session.user_id})
        return from_wire(body)

    async def resubmit(self, pr_id: str, draft: PricingRequestDraft) -> PricingRequest:
        """Send an edited action-required request back for review."""
        payload = draft_to_payload(draft)
        body = await self.transport.post(
            endpoints.sales_resubmit(pr_id),
            token=self.session.require_open(),
            json=payload.model_dump(mode="json"),
        )
        logger.info("sales.pr.resubmitted", extra={"pr_id": pr_id, "user_id": self.session.user_id})
        return from_wire(body)

    async def delete(self, pr_id: str) -> None:
        await self.transport.delete(
            endpoints.sales_request(pr_id),
            token=self.session.require_open(),
        )
        logger.info("sales.pr.deleted", extra={"pr_id": pr_id, "user_id": self.session.user_id})
