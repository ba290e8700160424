"""
Bearer-token authentication.

The shop's identity service is out of scope; an ``Authenticator`` maps a
bearer token to a user id and anything else can be plugged in its place.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping

type Authenticator = Callable[[str], Awaitable[str | None]]


class StaticTokens:
    """Tokens configured up front, e.g. ``SHOPFLOW_API_TOKENS="tok:user"``."""

    def __init__(self, tokens: Mapping[str, str]) -> None:
        self._tokens = dict(tokens)

    async def __call__(self, token: str) -> str | None:
        return self._tokens.get(token)


__all__ = ("Authenticator", "StaticTokens")
