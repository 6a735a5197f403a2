"""Structured error payload returned by the API on non-success responses."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel


class ErrorResponse(SQLModel):
    """Standardized error body; only ``detail`` is guaranteed."""

    detail: str | dict[str, object] | list[object] | None = Field(
        default=None,
        description=(
            "Error payload. Prefer `code` when present and fall back to "
            "`message` (dict detail) or the plain string for display."
        ),
    )
    request_id: str | None = Field(
        default=None,
        description="Request correlation identifier injected by server middleware.",
    )
    code: str | None = Field(default=None, description="Optional machine-readable error code.")
    retryable: bool | None = Field(
        default=None,
        description="Whether the call may succeed if repeated unchanged.",
    )

    def message(self, fallback: str) -> str:
        """Human-readable message extracted from ``detail``."""
        detail = self.detail
        if isinstance(detail, str) and detail.strip():
            return detail.strip()
        if isinstance(detail, dict):
            message = detail.get("message") or detail.get("detail")
            if isinstance(message, str) and message.strip():
                return message.strip()
        if isinstance(detail, list) and detail:
            return "; ".join(self.problems()) or fallback
        return fallback

    def problems(self) -> list[str]:
        """Flatten validation entries (``[{"loc": [...], "msg": ...}]``) to strings."""
        if not isinstance(self.detail, list):
            return []
        problems: list[str] = []
        for entry in self.detail:
            if isinstance(entry, dict):
                loc = entry.get("loc")
                msg = str(entry.get("msg") or entry)
                if isinstance(loc, list) and loc:
                    problems.append(f"{'.'.join(str(part) for part in loc)}: {msg}")
                else:
                    problems.append(msg)
            else:
                problems.append(str(entry))
        return problems
