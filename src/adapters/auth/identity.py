"""Identity sources for the request context."""

import logging

from src.ports.identity import Identity, SessionLookupPort

from .session_cache import SessionCache

logger = logging.getLogger(__name__)


class StaticIdentity:
    """A fixed identity (or none). Used by the CLI and by tests."""

    def __init__(self, identity: Identity | None) -> None:
        self._identity = identity

    def current(self) -> Identity | None:
        return self._identity


class SessionIdentity:
    """
    Resolve the identity for one request from its session token.

    Hits the cache first and falls back to the host's session lookup. Any
    failure of the lookup is treated as "no session".
    """

    def __init__(self, token: str | None, lookup: SessionLookupPort, cache: SessionCache) -> None:
        self._token = token
        self._lookup = lookup
        self._cache = cache

    def current(self) -> Identity | None:
        if not self._token:
            return None

        cached = self._cache.get(self._token)
        if cached is not None:
            return cached

        try:
            identity = self._lookup.resolve(self._token)
        except Exception:
            logger.exception("Session lookup failed; treating request as signed out")
            return None

        if identity is not None:
            self._cache.put(self._token, identity)
        return identity
