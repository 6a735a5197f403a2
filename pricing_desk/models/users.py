"""Authenticated user profile."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pricing_desk.models.statuses import UserRole


@dataclass(frozen=True)
class UserProfile:
    """Caller identity returned by ``GET /auth/profile``."""

    id: str
    username: str
    email: str
    role: UserRole
    created_at: datetime | None = None

    @property
    def is_sales(self) -> bool:
        return self.role is UserRole.SALES_EXECUTIVE

    @property
    def is_analyst(self) -> bool:
        return self.role is UserRole.PRICING_ANALYST
