"""Clients and the transport-independent request pipeline."""

from __future__ import annotations

from .pipeline import Middleware, MiddlewareChain, Request, Response
from .http import AsyncClient, BaseClient, Client, ClientConfig, SupportsAsyncSend, SupportsSend

__all__ = [
    "AsyncClient",
    "BaseClient",
    "Client",
    "ClientConfig",
    "Middleware",
    "MiddlewareChain",
    "Request",
    "Response",
    "SupportsAsyncSend",
    "SupportsSend",
]
