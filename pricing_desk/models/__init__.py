"""Domain model exports."""

from pricing_desk.models.pricing_requests import (
    Address,
    Comment,
    LineItem,
    PricingRequest,
    PricingRequestDraft,
)
from pricing_desk.models.statuses import FinalOutcome, PRStatus, UserRole
from pricing_desk.models.users import UserProfile

__all__ = [
    "Address",
    "Comment",
    "FinalOutcome",
    "LineItem",
    "PRStatus",
    "PricingRequest",
    "PricingRequestDraft",
    "UserProfile",
    "UserRole",
]
