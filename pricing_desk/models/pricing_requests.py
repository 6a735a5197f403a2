"""Domain shapes for pricing requests, their items and comments."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from pricing_desk.models.statuses import FinalOutcome, PRStatus, UserRole

DEFAULT_COUNTRY = "USA"


@dataclass(frozen=True)
class Address:
    """Origin or destination of a shipment."""

    address: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = DEFAULT_COUNTRY


@dataclass(frozen=True)
class LineItem:
    """One commodity line on a pricing request."""

    name: str
    commodity_class: str
    total_weight: float
    handling_unit: str
    pieces: int
    container_type: str
    pallets: int = 0
    id: str | None = None


@dataclass(frozen=True)
class Comment:
    """Append-only remark; analysts request changes by leaving one."""

    text: str
    author_role: UserRole | None = None
    author_id: str | None = None
    created_at: datetime | None = None
    id: str | None = None


@dataclass(frozen=True)
class PricingRequestDraft:
    """Fields a sales executive writes when saving or submitting a request."""

    shipment_date: date | None = None
    account_info: str = ""
    discount: str = ""
    origin: Address = field(default_factory=Address)
    destination: Address = field(default_factory=Address)
    items: tuple[LineItem, ...] = ()
    accessorial: str = ""
    pickup: str = ""
    delivery: str = ""
    daylight_protect: bool = False
    daylight_description: str | None = None
    daylight_note: str | None = None


@dataclass(frozen=True)
class PricingRequest(PricingRequestDraft):
    """A stored pricing request with both status tracks mirrored client-side."""

    id: str = ""
    created_by: str = ""
    sales_status: PRStatus = PRStatus.DRAFT
    analyst_status: PRStatus | None = None
    assigned_to: str | None = None
    final_approval_status: FinalOutcome | None = None
    submission_date: datetime | None = None
    last_updated: datetime | None = None
    comments: tuple[Comment, ...] = ()

    @property
    def effective_status(self) -> PRStatus:
        """Single lifecycle state derived from the two tracks."""
        if PRStatus.CLOSED in (self.sales_status, self.analyst_status):
            return PRStatus.CLOSED
        if self.analyst_status is not None and self.analyst_status is not PRStatus.UNKNOWN:
            return self.analyst_status
        return self.sales_status

    @property
    def is_assigned(self) -> bool:
        return bool(self.assigned_to)

    @property
    def latest_comment(self) -> Comment | None:
        return self.comments[-1] if self.comments else None

    def as_draft(self) -> PricingRequestDraft:
        return PricingRequestDraft(
            shipment_date=self.shipment_date,
            account_info=self.account_info,
            discount=self.discount,
            origin=self.origin,
            destination=self.destination,
            items=self.items,
            accessorial=self.accessorial,
            pickup=self.pickup,
            delivery=self.delivery,
            daylight_protect=self.daylight_protect,
            daylight_description=self.daylight_description,
            daylight_note=self.daylight_note,
        )
