"""Translation between API wire records and domain objects.

Every function here is pure. ``from_wire`` always returns a fully populated
``PricingRequest`` (blank strings, ``"USA"`` countries, ``False`` flags),
and statuses are canonicalized here and nowhere else.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from pydantic import ValidationError

from pricing_desk.core.errors import ValidationFailure
from pricing_desk.models.pricing_requests import (
    DEFAULT_COUNTRY,
    Address,
    Comment,
    LineItem,
    PricingRequest,
    PricingRequestDraft,
)
from pricing_desk.models.statuses import (
    PRStatus,
    UserRole,
    canonicalize_outcome,
    canonicalize_role,
    canonicalize_status,
)
from pricing_desk.models.users import UserProfile
from pricing_desk.schemas.auth import ProfileWire
from pricing_desk.schemas.pricing_requests import (
    CommentWire,
    LineItemWire,
    PricingRequestPayload,
    PricingRequestWire,
)

WireRecord = PricingRequestWire | Mapping[str, Any]


def format_wire_date(value: date | datetime | str | None) -> str | None:
    """Render a date as ``YYYY-MM-DD``; strings pass through unchanged."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def parse_wire_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def parse_wire_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    raw = value.strip()
    if raw.endswith("Z"):
        raw = f"{raw[:-1]}+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def format_wire_datetime(value: datetime | None) -> str | None:
    return None if value is None else value.isoformat()


def _daylight_fields(draft: PricingRequestDraft) -> tuple[str | None, str | None]:
    if not draft.daylight_protect:
        return None, None
    return draft.daylight_description, draft.daylight_note


def _item_to_payload(item: LineItem) -> dict[str, object]:
    return {
        "item_name": item.name,
        "commodity_class": item.commodity_class,
        "total_weight": item.total_weight,
        "handling_unit": item.handling_unit,
        "no_of_pieces": item.pieces,
        "container_type": item.container_type,
        "no_of_pallets": item.pallets,
    }


def draft_to_payload(draft: PricingRequestDraft) -> PricingRequestPayload:
    """Build a write request body, validating items before anything is sent."""
    description, note = _daylight_fields(draft)
    try:
        return PricingRequestPayload(
            shipment_date=format_wire_date(draft.shipment_date),
            account_info=draft.account_info,
            discount=draft.discount,
            origin_address=draft.origin.address,
            origin_state=draft.origin.state,
            origin_zip=draft.origin.zip_code,
            origin_country=draft.origin.country or DEFAULT_COUNTRY,
            dest_address=draft.destination.address,
            dest_state=draft.destination.state,
            dest_zip=draft.destination.zip_code,
            dest_country=draft.destination.country or DEFAULT_COUNTRY,
            accessorial=draft.accessorial,
            pickup=draft.pickup,
            delivery=draft.delivery,
            daylight_protect=draft.daylight_protect,
            insurance_description=description,
            insurance_note=note,
            items=[_item_to_payload(item) for item in draft.items],
        )
    except ValidationError as exc:
        problems = [
            f"{'.'.join(str(part) for part in err['loc']) or 'request'}: {err['msg']}"
            for err in exc.errors()
        ]
        raise ValidationFailure(
            "Pricing request failed validation",
            problems=problems,
        ) from exc


def _item_to_wire(item: LineItem) -> LineItemWire:
    return LineItemWire(id=item.id, **_item_to_payload(item))


def _comment_to_wire(comment: Comment) -> CommentWire:
    return CommentWire(
        id=comment.id,
        comment_text=comment.text,
        role=comment.author_role.value if comment.author_role else None,
        user_id=comment.author_id,
        created_at=format_wire_datetime(comment.created_at),
    )


def to_wire(pr: PricingRequest) -> PricingRequestWire:
    """Render a domain request as a full wire record (statuses as labels)."""
    description, note = _daylight_fields(pr)
    return PricingRequestWire(
        id=pr.id,
        shipment_date=format_wire_date(pr.shipment_date),
        account_info=pr.account_info,
        discount=pr.discount,
        origin_address=pr.origin.address,
        origin_state=pr.origin.state,
        origin_zip=pr.origin.zip_code,
        origin_country=pr.origin.country,
        dest_address=pr.destination.address,
        dest_state=pr.destination.state,
        dest_zip=pr.destination.zip_code,
        dest_country=pr.destination.country,
        accessorial=pr.accessorial,
        pickup=pr.pickup,
        delivery=pr.delivery,
        daylight_protect=pr.daylight_protect,
        insurance_description=description,
        insurance_note=note,
        items=[_item_to_wire(item) for item in pr.items],
        sales_status=pr.sales_status.label,
        analyst_status=pr.analyst_status.label if pr.analyst_status else None,
        final_approval_status=(
            pr.final_approval_status.label if pr.final_approval_status else None
        ),
        created_by=pr.created_by,
        assigned_to=pr.assigned_to,
        submission_date=format_wire_datetime(pr.submission_date),
        last_updated=format_wire_datetime(pr.last_updated),
        comments=[_comment_to_wire(comment) for comment in pr.comments],
    )


def _item_from_wire(item: LineItemWire) -> LineItem:
    return LineItem(
        id=item.id,
        name=item.item_name,
        commodity_class=item.commodity_class,
        total_weight=item.total_weight,
        handling_unit=item.handling_unit,
        pieces=item.no_of_pieces,
        container_type=item.container_type,
        pallets=item.no_of_pallets,
    )


def _comment_from_wire(comment: CommentWire) -> Comment:
    return Comment(
        id=comment.id,
        text=comment.comment_text,
        author_role=canonicalize_role(comment.role),
        author_id=comment.user_id,
        created_at=parse_wire_datetime(comment.created_at),
    )


def _coerce_wire(record: WireRecord) -> PricingRequestWire:
    if isinstance(record, PricingRequestWire):
        return record
    try:
        return PricingRequestWire.model_validate(dict(record))
    except ValidationError as exc:
        raise ValidationFailure(
            "Malformed pricing request record",
            problems=[str(err["msg"]) for err in exc.errors()],
        ) from exc


def from_wire(record: WireRecord) -> PricingRequest:
    """Rebuild a domain request from a wire record or raw JSON object."""
    wire = _coerce_wire(record)
    sales_status = canonicalize_status(wire.sales_status or wire.status) or PRStatus.DRAFT
    analyst_status = canonicalize_status(wire.analyst_status or wire.status)
    daylight = wire.daylight_protect
    return PricingRequest(
        id=wire.id,
        shipment_date=parse_wire_date(wire.shipment_date),
        account_info=wire.account_info,
        discount=wire.discount,
        origin=Address(
            address=wire.origin_address,
            state=wire.origin_state,
            zip_code=wire.origin_zip,
            country=wire.origin_country or DEFAULT_COUNTRY,
        ),
        destination=Address(
            address=wire.dest_address,
            state=wire.dest_state,
            zip_code=wire.dest_zip,
            country=wire.dest_country or DEFAULT_COUNTRY,
        ),
        items=tuple(_item_from_wire(item) for item in wire.items),
        accessorial=wire.accessorial,
        pickup=wire.pickup,
        delivery=wire.delivery,
        daylight_protect=daylight,
        daylight_description=wire.insurance_description if daylight else None,
        daylight_note=wire.insurance_note if daylight else None,
        created_by=wire.created_by,
        sales_status=sales_status,
        analyst_status=analyst_status,
        assigned_to=wire.assigned_to,
        final_approval_status=canonicalize_outcome(wire.final_approval_status),
        submission_date=parse_wire_datetime(wire.submission_date),
        last_updated=parse_wire_datetime(wire.last_updated),
        comments=tuple(_comment_from_wire(comment) for comment in wire.comments),
    )


def from_wire_list(records: object) -> list[PricingRequest]:
    if not isinstance(records, list):
        raise ValidationFailure("Expected a list of pricing requests")
    return [from_wire(record) for record in records]


def profile_from_wire(record: ProfileWire | Mapping[str, Any]) -> UserProfile:
    if isinstance(record, ProfileWire):
        profile = record
    else:
        try:
            profile = ProfileWire.model_validate(dict(record))
        except ValidationError as exc:
            raise ValidationFailure(
                "Malformed profile record",
                problems=[str(err["msg"]) for err in exc.errors()],
            ) from exc
    role = canonicalize_role(profile.role)
    if role is None:
        raise ValidationFailure(f"Unknown user role {profile.role!r}")
    return UserProfile(
        id=profile.id,
        username=profile.username,
        email=profile.email,
        role=role,
        created_at=parse_wire_datetime(profile.created_at),
    )


def role_to_wire(role: UserRole) -> str:
    return role.value
