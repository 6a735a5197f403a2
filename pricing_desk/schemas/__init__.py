"""Public wire schema exports."""

from pricing_desk.schemas.auth import LoginPayload, ProfileWire, RegisterPayload, TokenResponse
from pricing_desk.schemas.errors import ErrorResponse
from pricing_desk.schemas.pricing_requests import (
    CommentWire,
    LineItemPayload,
    LineItemWire,
    PricingRequestPayload,
    PricingRequestWire,
    ReviewDecisionPayload,
)

__all__ = [
    "CommentWire",
    "ErrorResponse",
    "LineItemPayload",
    "LineItemWire",
    "LoginPayload",
    "PricingRequestPayload",
    "PricingRequestWire",
    "ProfileWire",
    "RegisterPayload",
    "ReviewDecisionPayload",
    "TokenResponse",
]
