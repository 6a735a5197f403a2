# ruff: noqa: INP001
"""Login, restore and logout against the in-memory API."""

from __future__ import annotations

import httpx
import pytest
from fake_backend import FakeState

from pricing_desk.core.errors import AuthorizationError, ServerError, ValidationFailure
from pricing_desk.models.statuses import UserRole
from pricing_desk.models.users import UserProfile
from pricing_desk.services.auth import AuthService, Session
from pricing_desk.services.sales import SalesRequestService
from pricing_desk.services.token_store import MemoryTokenStore
from pricing_desk.services.transport import ApiTransport
from pricing_desk.services.workspaces import AnalystWorkspace, SalesWorkspace


@pytest.mark.asyncio
async def test_register_opens_role_workspace(make_client) -> None:
    async with make_client() as client:
        workspace = await client.register("sam", "sam@x.io", "secret1", UserRole.SALES_EXECUTIVE)
        assert isinstance(workspace, SalesWorkspace)
        assert client.session is not None
        assert client.session.profile.username == "sam"
        assert client.session.is_open


@pytest.mark.asyncio
async def test_login_persists_token_and_picks_workspace(
    make_client, backend: FakeState
) -> None:
    backend.add_user("ann", "ann@x.io", "secret1", "PA")
    store = MemoryTokenStore()
    async with make_client(store) as client:
        workspace = await client.login("ann@x.io", "secret1")
        assert isinstance(workspace, AnalystWorkspace)
        assert store.load() == client.session.token
        assert store.load() in backend.tokens


@pytest.mark.asyncio
async def test_bad_credentials_raise_authorization_error(make_client, backend: FakeState) -> None:
    backend.add_user("ann", "ann@x.io", "secret1", "PA")
    async with make_client() as client:
        with pytest.raises(AuthorizationError):
            await client.login("ann@x.io", "wrong-password")
        assert client.session is None


@pytest.mark.asyncio
async def test_register_validates_locally(make_client, backend: FakeState) -> None:
    async with make_client() as client:
        with pytest.raises(ValidationFailure):
            await client.register("s", "s@x.io", "123", UserRole.SALES_EXECUTIVE)
    assert backend.users == {}


@pytest.mark.asyncio
async def test_restore_reuses_stored_token(make_client, backend: FakeState) -> None:
    user = backend.add_user("sam", "sam@x.io", "secret1", "SE")
    token = backend.issue_token(user)
    async with make_client(MemoryTokenStore(token)) as client:
        workspace = await client.restore()
        assert isinstance(workspace, SalesWorkspace)
        assert client.session.user_id == user.id


@pytest.mark.asyncio
async def test_restore_clears_expired_token(make_client) -> None:
    store = MemoryTokenStore("expired-token")
    async with make_client(store) as client:
        assert await client.restore() is None
    assert store.load() is None


@pytest.mark.asyncio
async def test_restore_without_token_is_none(make_client) -> None:
    async with make_client() as client:
        assert await client.restore() is None


@pytest.mark.asyncio
async def test_logout_closes_session_and_clears_cache(make_client, backend: FakeState) -> None:
    backend.add_user("sam", "sam@x.io", "secret1", "SE")
    store = MemoryTokenStore()
    async with make_client(store) as client:
        workspace = await client.login("sam@x.io", "secret1")
        await workspace.load_requests()
        session = client.session
        assert client.cache.keys()

        await client.logout()

        assert not session.is_open
        assert store.load() is None
        assert session.token not in backend.tokens
        assert client.cache.keys() == []
        with pytest.raises(AuthorizationError):
            client.require_workspace()
        with pytest.raises(AuthorizationError):
            await workspace.load_requests()


@pytest.mark.asyncio
async def test_logout_clears_token_even_when_api_fails(make_client, backend: FakeState) -> None:
    backend.add_user("sam", "sam@x.io", "secret1", "SE")
    store = MemoryTokenStore()
    async with make_client(store) as client:
        await client.login("sam@x.io", "secret1")
        session = client.session
        backend.fail_next["/auth/logout"] = 500
        with pytest.raises(ServerError, match="injected failure"):
            await client.logout()
        assert store.load() is None
        assert not session.is_open


@pytest.mark.asyncio
async def test_closed_session_refuses_service_calls(make_client, backend: FakeState) -> None:
    backend.add_user("sam", "sam@x.io", "secret1", "SE")
    async with make_client() as client:
        await client.login("sam@x.io", "secret1")
        session = client.session
        service = SalesRequestService(client.transport, session)
        session.close()
        with pytest.raises(AuthorizationError, match="closed"):
            await service.list_requests()
        with pytest.raises(AuthorizationError):
            await client.auth.profile(session)


def test_session_repr_hides_token() -> None:
    session = Session(
        token="very-secret",
        profile=UserProfile(id="u1", username="u", email="u@x.io", role=UserRole.PRICING_ANALYST),
    )
    assert "very-secret" not in repr(session)


@pytest.mark.asyncio
async def test_missing_access_token_is_validation_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        del request
        return httpx.Response(200, json={"token": "wrong-shape"})

    async with ApiTransport("http://api.test", transport=httpx.MockTransport(handler)) as t:
        with pytest.raises(ValidationFailure):
            await AuthService(t, MemoryTokenStore()).login(email="a@x.io", password="pw")
