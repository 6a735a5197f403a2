"""Bearer token persistence between process runs."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import redis

from pricing_desk.core.config import Settings, TokenStoreKind, settings
from pricing_desk.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

logger = get_logger(__name__)


class TokenStore(Protocol):
    def load(self) -> str | None: ...

    def save(self, token: str) -> None: ...

    def clear(self) -> None: ...


class MemoryTokenStore:
    """Keeps the token for the lifetime of the process only."""

    def __init__(self, token: str | None = None) -> None:
        self._token = token

    def load(self) -> str | None:
        return self._token

    def save(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileTokenStore:
    """Single-line token file readable only by the owner."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path or settings.token_file).expanduser()

    def load(self) -> str | None:
        try:
            token = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return token or None

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(token)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


def _redis_client(redis_url: str | None = None) -> redis.Redis:
    return redis.Redis.from_url(redis_url or settings.token_redis_url)


class RedisTokenStore:
    """Token kept under one Redis key so several workers share a login."""

    def __init__(
        self,
        *,
        redis_url: str | None = None,
        key: str | None = None,
        client_factory: Callable[..., redis.Redis] | None = None,
    ) -> None:
        self.redis_url = redis_url or settings.token_redis_url
        self.key = key or settings.token_redis_key
        self._client_factory = client_factory or _redis_client

    def _client(self) -> redis.Redis:
        return self._client_factory(redis_url=self.redis_url)

    def load(self) -> str | None:
        raw = self._client().get(self.key)
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return str(raw) or None

    def save(self, token: str) -> None:
        self._client().set(self.key, token)
        logger.debug("auth.token_store.saved", extra={"store": "redis", "key": self.key})

    def clear(self) -> None:
        self._client().delete(self.key)
        logger.debug("auth.token_store.cleared", extra={"store": "redis", "key": self.key})


def build_token_store(config: Settings | None = None) -> TokenStore:
    """Pick the token store named by ``TOKEN_STORE``."""
    config = config or settings
    if config.token_store is TokenStoreKind.FILE:
        return FileTokenStore(config.token_file)
    if config.token_store is TokenStoreKind.REDIS:
        return RedisTokenStore(redis_url=config.token_redis_url, key=config.token_redis_key)
    return MemoryTokenStore()
