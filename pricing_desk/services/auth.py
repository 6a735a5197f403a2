"""Login, logout and the explicit session object threaded through services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import ValidationError

from pricing_desk.core.errors import AuthorizationError, ValidationFailure
from pricing_desk.core.logging import get_logger
from pricing_desk.core.time import utcnow
from pricing_desk.schemas.auth import LoginPayload, RegisterPayload, TokenResponse
from pricing_desk.services import endpoints
from pricing_desk.services.mapper import profile_from_wire, role_to_wire

if TYPE_CHECKING:
    from pricing_desk.models.statuses import UserRole
    from pricing_desk.models.users import UserProfile
    from pricing_desk.services.token_store import TokenStore
    from pricing_desk.services.transport import ApiTransport

logger = get_logger(__name__)


@dataclass
class Session:
    """Authenticated caller context, opened at login and closed at logout."""

    token: str
    profile: UserProfile
    opened_at: datetime = field(default_factory=utcnow)
    closed_at: datetime | None = None

    @property
    def user_id(self) -> str:
        return self.profile.id

    @property
    def is_open(self) -> bool:
        return self.closed_at is None

    def require_open(self) -> str:
        """Return the bearer token, refusing once the session is closed."""
        if not self.is_open:
            raise AuthorizationError("Session is closed; log in again")
        return self.token

    def close(self) -> None:
        if self.closed_at is None:
            self.closed_at = utcnow()

    def __repr__(self) -> str:
        return (
            f"Session(user_id={self.profile.id!r}, role={self.profile.role.value!r}, "
            f"open={self.is_open})"
        )


def _token_from(body: object) -> str:
    try:
        return TokenResponse.model_validate(body).access_token
    except ValueError as exc:
        raise ValidationFailure("Auth response did not include an access token") from exc


class AuthService:
    """Bearer-token auth against ``/auth`` with pluggable token persistence."""

    def __init__(self, transport: ApiTransport, token_store: TokenStore) -> None:
        self.transport = transport
        self.token_store = token_store

    async def _open(self, token: str) -> Session:
        profile = profile_from_wire(await self.transport.get(endpoints.AUTH_PROFILE, token=token))
        self.token_store.save(token)
        session = Session(token=token, profile=profile)
        logger.info(
            "auth.session.opened",
            extra={"user_id": profile.id, "role": profile.role.value},
        )
        return session

    async def register(
        self,
        *,
        username: str,
        email: str,
        password: str,
        role: UserRole,
    ) -> Session:
        try:
            payload = RegisterPayload(
                username=username,
                email=email,
                password=password,
                role=role_to_wire(role),
            )
        except ValidationError as exc:
            raise ValidationFailure(
                "Registration details failed validation",
                problems=[str(err["msg"]) for err in exc.errors()],
            ) from exc
        body = await self.transport.post(endpoints.AUTH_REGISTER, json=payload.model_dump())
        return await self._open(_token_from(body))

    async def login(self, *, email: str, password: str) -> Session:
        try:
            payload = LoginPayload(email=email, password=password)
        except ValidationError as exc:
            raise ValidationFailure("Email and password are required") from exc
        body = await self.transport.post(endpoints.AUTH_LOGIN, json=payload.model_dump())
        return await self._open(_token_from(body))

    async def restore(self) -> Session | None:
        """Reopen a session from a persisted token.

        Returns ``None`` when no token is stored or the stored one has
        expired (it is cleared in that case); other failures propagate.
        """
        token = self.token_store.load()
        if not token:
            return None
        try:
            return await self._open(token)
        except AuthorizationError:
            logger.info("auth.session.restore_expired")
            self.token_store.clear()
            return None

    async def profile(self, session: Session) -> UserProfile:
        token = session.require_open()
        return profile_from_wire(await self.transport.get(endpoints.AUTH_PROFILE, token=token))

    async def logout(self, session: Session) -> None:
        """Tell the API, then always drop the stored token and close the session."""
        if not session.is_open:
            return
        try:
            await self.transport.post(endpoints.AUTH_LOGOUT, token=session.token)
        finally:
            self.token_store.clear()
            session.close()
            logger.info("auth.session.closed", extra={"user_id": session.user_id})
