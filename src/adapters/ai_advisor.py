"""Adaptador IA (OpenAI SDK, cualquier proveedor compatible).

Responsabilidad:
- Extraer un número de vuelo de texto libre (sentinela `NOT_FOUND` si no hay).
- Generar un consejo breve para la recogida en el aeropuerto.

Los fallos se reportan como `AdvisorError`; decidir qué hacer con ellos
(NotFound en el normalizador, texto fijo en el pipeline) es cosa del Core.
"""

from __future__ import annotations

import asyncio
import logging
import random
from datetime import datetime

import httpx
from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    OpenAIError,
    RateLimitError,
)

from core.config import AppSettings
from core.domain.models import DrivingEstimate, FlightSnapshot
from core.errors import AdvisorError
from core.services.advice import summarize_for_advice

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = (
    "Extract flight numbers from user input. Return only the flight number in format "
    "like 'AA1234' or 'UA456'. If no flight number found, return 'NOT_FOUND'."
)
ADVICE_PROMPT = "Provide helpful advice for airport pickup timing. Be concise and practical."


def _safe_retry_after_seconds(exc: Exception) -> float | None:
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    value = headers.get("retry-after") or headers.get("Retry-After")
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


def _is_local_base_url(url: str) -> bool:
    url_l = (url or "").strip().lower()
    return url_l.startswith(("http://localhost", "http://127.0.0.1", "http://0.0.0.0"))


class OpenAIAdvisor:
    """Flight-number extraction and pickup advice over chat completions."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._http_client = http_client

    def _build_client(self) -> AsyncOpenAI:
        api_key = (self._settings.ai_api_key or "").strip()
        if not api_key:
            # Los servidores locales compatibles (ollama, etc.) aceptan cualquier key.
            if not _is_local_base_url(self._settings.ai_base_url):
                raise AdvisorError("missing_ai_api_key")
            api_key = "local"
        return AsyncOpenAI(
            api_key=api_key,
            base_url=self._settings.ai_base_url,
            timeout=self._settings.ai_timeout_seconds,
            max_retries=0,
            http_client=self._http_client,
        )

    async def _complete(self, *, system: str, user: str, max_tokens: int) -> str:
        client = self._build_client()
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]
        max_retries = self._settings.ai_max_retries
        last_error: Exception | None = None

        # Reintentos: el proveedor puede devolver rate limits o timeouts.
        for attempt in range(max_retries + 1):
            try:
                response = await client.chat.completions.create(
                    model=self._settings.ai_model,
                    messages=messages,  # type: ignore[arg-type]
                    max_tokens=max_tokens,
                )
                return (response.choices[0].message.content or "").strip()

            except APIStatusError as exc:
                last_error = exc
                if getattr(exc, "status_code", None) != 429 or attempt >= max_retries:
                    break
                retry_after = _safe_retry_after_seconds(exc)
                base = retry_after if retry_after is not None else (1.25 * (2**attempt))
                await asyncio.sleep(base + random.uniform(0.0, 0.35))

            except (RateLimitError, APITimeoutError, APIConnectionError) as exc:
                last_error = exc
                if attempt >= max_retries:
                    break
                retry_after = _safe_retry_after_seconds(exc)
                base = retry_after if retry_after is not None else (1.25 * (2**attempt))
                await asyncio.sleep(base + random.uniform(0.0, 0.35))

            except OpenAIError as exc:
                last_error = exc
                break

            # Respuestas con forma inesperada (p. ej. `choices: null`).
            except Exception as exc:
                last_error = exc
                break

        reason = type(last_error).__name__ if last_error else "unknown"
        raise AdvisorError(f"provider_failed:{reason}") from last_error

    async def extract_flight_number(self, text: str) -> str | None:
        answer = await self._complete(system=EXTRACTION_PROMPT, user=text, max_tokens=50)
        return answer or None

    async def advise(
        self,
        snapshot: FlightSnapshot,
        estimate: DrivingEstimate,
        departure_at: datetime,
    ) -> str:
        summary = summarize_for_advice(snapshot, estimate, departure_at)
        return await self._complete(system=ADVICE_PROMPT, user=summary, max_tokens=200)
