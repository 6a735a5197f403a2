"""Authenticated JSON transport over httpx."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from pricing_desk.core.config import settings
from pricing_desk.core.errors import (
    NetworkError,
    PricingDeskError,
    ServerError,
    ValidationFailure,
    error_class_for_status,
)
from pricing_desk.core.logging import get_logger
from pricing_desk.schemas.errors import ErrorResponse

if TYPE_CHECKING:
    from types import TracebackType
    from typing import Self

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"
_ERROR_BODY_PREVIEW = 800


def _is_json(response: httpx.Response) -> bool:
    return "application/json" in (response.headers.get("content-type") or "").lower()


def _error_from_response(response: httpx.Response) -> PricingDeskError:
    fallback = f"API request failed with status {response.status_code}: {response.reason_phrase}"
    body = ErrorResponse()
    if _is_json(response):
        try:
            body = ErrorResponse.model_validate(response.json())
        except (ValueError, ValidationError):
            body = ErrorResponse(detail=(response.text or "")[:_ERROR_BODY_PREVIEW] or None)
    elif response.text:
        body = ErrorResponse(detail=response.text[:_ERROR_BODY_PREVIEW])
    error_cls = error_class_for_status(response.status_code)
    kwargs: dict[str, Any] = {
        "code": body.code,
        "status_code": response.status_code,
        "request_id": body.request_id or response.headers.get(REQUEST_ID_HEADER),
        "retryable": body.retryable,
    }
    if error_cls is ValidationFailure:
        return ValidationFailure(body.message(fallback), problems=body.problems(), **kwargs)
    return error_cls(body.message(fallback), **kwargs)


class ApiTransport:
    """Issue JSON requests against the pricing request API.

    The bearer token is passed per call so a single transport can serve
    several sessions; nothing here caches credentials.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = settings.request_timeout_seconds if timeout is None else timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        json: object | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body (``None`` if empty)."""
        headers = {"Authorization": f"Bearer {token}"} if token else None
        started = time.perf_counter()
        try:
            response = await self._client.request(
                method,
                path,
                json=json,
                params=params,
                headers=headers,
            )
        except httpx.TimeoutException as exc:
            logger.warning(
                "transport.timeout",
                extra={"method": method, "path": path, "timeout": self.timeout},
            )
            raise NetworkError(f"Timed out calling {method} {path}", retryable=True) from exc
        except httpx.TransportError as exc:
            logger.warning(
                "transport.unreachable",
                extra={"method": method, "path": path, "error": str(exc) or type(exc).__name__},
            )
            raise NetworkError(f"Could not reach API for {method} {path}", retryable=True) from exc

        elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
        logger.debug(
            "transport.request",
            extra={
                "method": method,
                "path": path,
                "status": response.status_code,
                "elapsed_ms": elapsed_ms,
            },
        )
        if response.is_error:
            error = _error_from_response(response)
            logger.info(
                "transport.error_response",
                extra={
                    "method": method,
                    "path": path,
                    "status": response.status_code,
                    "code": error.code,
                    "request_id": error.request_id,
                },
            )
            raise error
        if response.status_code == 204 or not response.content:
            return None
        if not _is_json(response):
            raise ServerError(
                f"API returned non-JSON body for {method} {path}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ServerError(
                f"API returned malformed JSON for {method} {path}",
                status_code=response.status_code,
            ) from exc

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)
