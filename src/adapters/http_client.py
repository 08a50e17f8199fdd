"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts y headers de los proveedores de vuelos y tráfico.
- Facilita testeo: los adaptadores aceptan un cliente inyectado (MockTransport).
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con los defaults de la aplicación."""

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
    )


@asynccontextmanager
async def client_scope(
    client: httpx.AsyncClient | None,
    settings: AppSettings,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the injected client as-is, or a fresh one closed on exit."""

    if client is not None:
        yield client
        return
    async with build_async_client(settings) as owned:
        yield owned
