"""Wire schemas for pricing request payloads (flat, snake_case, ISO dates)."""

from __future__ import annotations

from typing import Any, Literal, Self

from pydantic import field_validator, model_validator
from sqlmodel import Field, SQLModel

_ERR_ITEMS_REQUIRED = "At least one item is required"

# Older API builds used different names for a handful of fields.
_LEGACY_ALIASES = {
    "pr_id": "id",
    "assigned": "assigned_to",
    "destination_state": "dest_state",
}

ReviewAction = Literal["approve", "reject", "action_required"]


def _text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else ""
    return str(value)


class LineItemWire(SQLModel):
    """Item record as returned by the API."""

    id: str | None = None
    item_name: str = ""
    commodity_class: str = ""
    total_weight: float = 0
    handling_unit: str = ""
    no_of_pieces: int = 0
    container_type: str = ""
    no_of_pallets: int = 0

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: object) -> str | None:
        return None if value is None else str(value)

    @field_validator(
        "item_name", "commodity_class", "handling_unit", "container_type", mode="before"
    )
    @classmethod
    def _coerce_text(cls, value: object) -> str:
        return _text(value)


class LineItemPayload(SQLModel):
    """Item record sent on save/submit/update/resubmit."""

    item_name: str = Field(min_length=1)
    commodity_class: str = Field(min_length=1)
    total_weight: float = Field(gt=0)
    handling_unit: str
    no_of_pieces: int = Field(ge=1)
    container_type: str = Field(min_length=1)
    no_of_pallets: int = Field(default=0, ge=0)


class CommentWire(SQLModel):
    """Comment record as returned by the API."""

    id: str | None = None
    comment_text: str = ""
    role: str | None = None
    user_id: str | None = None
    created_at: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _fold_comment_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and "id" not in data and "comment_id" in data:
            data = {**data, "id": data["comment_id"]}
        return data

    @field_validator("id", "user_id", "created_at", mode="before")
    @classmethod
    def _optional_text(cls, value: object) -> str | None:
        return None if value is None else str(value)


class PricingRequestPayload(SQLModel):
    """Request body for the sales write endpoints."""

    shipment_date: str | None = None
    account_info: str = ""
    discount: str = ""
    origin_address: str = ""
    origin_state: str = ""
    origin_zip: str = ""
    origin_country: str = "USA"
    dest_address: str = ""
    dest_state: str = ""
    dest_zip: str = ""
    dest_country: str = "USA"
    accessorial: str = ""
    pickup: str = ""
    delivery: str = ""
    daylight_protect: bool = False
    insurance_description: str | None = None
    insurance_note: str | None = None
    items: list[LineItemPayload]

    @model_validator(mode="after")
    def validate_items(self) -> Self:
        """Reject an empty item list before it reaches the API."""
        if not self.items:
            raise ValueError(_ERR_ITEMS_REQUIRED)
        return self


class PricingRequestWire(SQLModel):
    """Full pricing request record as returned by read and write endpoints.

    Unknown fields are dropped on validation.
    """

    id: str = ""
    shipment_date: str | None = None
    account_info: str = ""
    discount: str = ""
    origin_address: str = ""
    origin_state: str = ""
    origin_zip: str = ""
    origin_country: str = ""
    dest_address: str = ""
    dest_state: str = ""
    dest_zip: str = ""
    dest_country: str = ""
    accessorial: str = ""
    pickup: str = ""
    delivery: str = ""
    daylight_protect: bool = False
    insurance_description: str | None = None
    insurance_note: str | None = None
    items: list[LineItemWire] = Field(default_factory=list)
    status: str | None = None
    sales_status: str | None = None
    analyst_status: str | None = None
    final_approval_status: str | None = None
    created_by: str = ""
    assigned_to: str | None = None
    submission_date: str | None = None
    last_updated: str | None = None
    comments: list[CommentWire] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _fold_legacy_aliases(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        folded = dict(data)
        for legacy, current in _LEGACY_ALIASES.items():
            if folded.get(current) in (None, "") and folded.get(legacy) not in (None, ""):
                folded[current] = folded[legacy]
        return folded

    @field_validator(
        "id",
        "account_info",
        "discount",
        "origin_address",
        "origin_state",
        "origin_zip",
        "origin_country",
        "dest_address",
        "dest_state",
        "dest_zip",
        "dest_country",
        "accessorial",
        "pickup",
        "delivery",
        "created_by",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: object) -> str:
        return _text(value)

    @field_validator(
        "assigned_to",
        "shipment_date",
        "submission_date",
        "last_updated",
        mode="before",
    )
    @classmethod
    def _optional_text(cls, value: object) -> str | None:
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("daylight_protect", mode="before")
    @classmethod
    def _coerce_flag(cls, value: object) -> bool:
        return bool(value)


class ReviewDecisionPayload(SQLModel):
    """Body for ``POST /pa/pr/{id}/approve-reject``."""

    action: ReviewAction
    comment: str = ""
