"""Cancellable HTTP transport."""

from __future__ import annotations

import asyncio
import contextlib
import json
import re
import time
from typing import Any

import httpx
from loguru import logger

from toolcheck.errors import HttpStatusError, LoopCancelled, ResponseNotJsonError, TransportError
from toolcheck.types import TransportResult

DEFAULT_TIMEOUT_SECONDS = 120.0
_KEY_PARAM = re.compile(r"([?&]key=)[^&]+")


class CancellationToken:
    """Cooperative cancellation flag shared by one run and its transport calls."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise LoopCancelled

    async def wait(self) -> None:
        await self._event.wait()


def redact_url(url: str) -> str:
    return _KEY_PARAM.sub(r"\1***", url)


class RequestTransport:
    """Performs one JSON POST per call, aborting it when the token fires."""

    def __init__(self, client: httpx.AsyncClient | None = None, *, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> RequestTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def send(
        self,
        url: str,
        *,
        headers: dict[str, str],
        body: Any,
        token: CancellationToken | None = None,
    ) -> TransportResult:
        token = token or CancellationToken()
        token.raise_if_cancelled()

        start = time.monotonic()
        request = asyncio.ensure_future(self._client.post(url, headers=headers, json=body))
        waiter = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({request, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not request.done():
                request.cancel()
                with contextlib.suppress(asyncio.CancelledError, httpx.HTTPError):
                    await request

        if request.cancelled() or token.cancelled:
            logger.info("transport.cancelled url={}", redact_url(url))
            raise LoopCancelled

        try:
            response = request.result()
        except httpx.HTTPError as exc:
            logger.warning("transport.error url={} error={!r}", redact_url(url), exc)
            raise TransportError(f"request failed: {exc!s}") from exc

        duration_ms = int((time.monotonic() - start) * 1000)
        result = _to_result(response, duration_ms)
        logger.info(
            "transport.response url={} status={} duration={}ms",
            redact_url(url),
            result.http_status,
            duration_ms,
        )
        if not response.is_success:
            raise HttpStatusError(result.http_status, raw_text=result.raw_text, content_type=result.content_type)
        if result.json is None:
            raise ResponseNotJsonError(raw_text=result.raw_text, content_type=result.content_type)
        return result


def _to_result(response: httpx.Response, duration_ms: int) -> TransportResult:
    text = response.text
    try:
        payload = json.loads(text)
    except (ValueError, RecursionError):
        payload = None
    return TransportResult(
        raw_text=text,
        content_type=response.headers.get("content-type", ""),
        http_status=response.status_code,
        json=payload,
        duration_ms=duration_ms,
    )
