"""
Client policies (cross-cutting behavioral controls).

Policies are orthogonal and composable. Each one is enforced as middleware that
the client installs ahead of any user-registered middleware, so a blocked request
never reaches user hooks or the transport.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .clients.pipeline import Middleware, Request
from .enums import RequestMethod
from .exceptions import WriteNotAllowedError

_SAFE_METHODS = frozenset(m.value for m in RequestMethod if m.is_safe)


class WritePolicy(Enum):
    """Whether the client may send requests other than GET/HEAD."""

    ALLOW = "allow"
    DENY = "deny"


class WritePolicyMiddleware(Middleware):
    def request(self, request: Request) -> Request:
        if request.method.upper() not in _SAFE_METHODS:
            raise WriteNotAllowedError(
                f"Cannot {request.method} {request.url}: writes are disabled by policy",
                method=request.method,
                url=request.url,
            )
        return request


@dataclass(frozen=True, slots=True)
class Policies:
    """Policy bundle applied to all requests made by a client."""

    write: WritePolicy = WritePolicy.ALLOW

    def middleware(self) -> tuple[Middleware, ...]:
        """The hooks enforcing these policies, in the order they must run."""
        if self.write == WritePolicy.DENY:
            return (WritePolicyMiddleware(),)
        return ()
