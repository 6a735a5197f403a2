"""Top-level wiring: one transport, one cache, one session at a time."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pricing_desk.core.errors import AuthorizationError
from pricing_desk.core.logging import configure_logging, get_logger
from pricing_desk.services.analyst import AnalystRequestService
from pricing_desk.services.auth import AuthService, Session
from pricing_desk.services.mutations import MutationCoordinator
from pricing_desk.services.polling import ListPoller
from pricing_desk.services.query_cache import QueryCache
from pricing_desk.services.sales import SalesRequestService
from pricing_desk.services.token_store import build_token_store
from pricing_desk.services.transport import ApiTransport
from pricing_desk.services.workspaces import AnalystWorkspace, SalesWorkspace

if TYPE_CHECKING:
    from types import TracebackType
    from typing import Self

    import httpx

    from pricing_desk.models.statuses import UserRole
    from pricing_desk.services.token_store import TokenStore

logger = get_logger(__name__)

Workspace = SalesWorkspace | AnalystWorkspace


class PricingDeskClient:
    """Entry point for applications.

    ``login``/``register``/``restore`` open a session and return the
    workspace for the caller's role; ``logout`` stops polling, drops every
    cached view and closes the session.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        token_store: TokenStore | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
        poll_interval: float | None = None,
    ) -> None:
        configure_logging()
        self.transport = ApiTransport(base_url, transport=http_transport)
        self.auth = AuthService(self.transport, token_store or build_token_store())
        self.cache = QueryCache()
        self.coordinator = MutationCoordinator(self.cache)
        self.poller = ListPoller(self.cache, interval=poll_interval)
        self.session: Session | None = None
        self.workspace: Workspace | None = None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def _attach(self, session: Session) -> Workspace:
        self.session = session
        if session.profile.is_sales:
            workspace: Workspace = SalesWorkspace(
                session,
                SalesRequestService(self.transport, session),
                self.cache,
                self.coordinator,
            )
        else:
            workspace = AnalystWorkspace(
                session,
                AnalystRequestService(self.transport, session),
                self.cache,
                self.coordinator,
            )
        workspace.watch(self.poller)
        self.workspace = workspace
        return workspace

    async def login(self, email: str, password: str) -> Workspace:
        if self.session is not None and self.session.is_open:
            await self.logout()
        return self._attach(await self.auth.login(email=email, password=password))

    async def register(self, username: str, email: str, password: str, role: UserRole) -> Workspace:
        if self.session is not None and self.session.is_open:
            await self.logout()
        session = await self.auth.register(
            username=username,
            email=email,
            password=password,
            role=role,
        )
        return self._attach(session)

    async def restore(self) -> Workspace | None:
        session = await self.auth.restore()
        return self._attach(session) if session is not None else None

    def require_workspace(self) -> Workspace:
        if self.workspace is None or self.session is None or not self.session.is_open:
            raise AuthorizationError("Not logged in")
        return self.workspace

    def start_polling(self) -> None:
        self.require_workspace()
        self.poller.start()

    async def logout(self) -> None:
        session, self.session = self.session, None
        self.workspace = None
        await self.poller.stop()
        self.poller.clear()
        self.coordinator.reset()
        self.cache.clear()
        if session is not None:
            await self.auth.logout(session)

    async def aclose(self) -> None:
        await self.poller.stop()
        await self.cache.drain()
        await self.transport.aclose()
