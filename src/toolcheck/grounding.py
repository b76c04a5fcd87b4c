"""Single-turn probes for vendor-hosted search and URL-context tools."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from toolcheck.adapters.base import GroundingKind, ProtocolAdapter
from toolcheck.errors import LoopCancelled, TransportError
from toolcheck.sink import ResultSink
from toolcheck.transport import CancellationToken, RequestTransport
from toolcheck.types import ConnectionConfig

GROUNDED_NOTICE = "The model called the search tool, but the answer may still contain factual errors."
NOT_GROUNDED_NOTICE = "No search tool call was triggered: the model may have ignored the instruction, or the API misbehaved."
URL_NOT_GROUNDED_NOTICE = (
    "No URL context tool call was triggered: the model may have ignored the instruction, or the API misbehaved."
)


@dataclass(frozen=True)
class GroundingResult:
    grounded: bool | None
    cancelled: bool = False
    error: str | None = None


class GroundingProbe:
    """Sends one grounded request and reports whether the hosted tool ran."""

    def __init__(
        self,
        *,
        adapter: ProtocolAdapter,
        transport: RequestTransport,
        config: ConnectionConfig,
        sink: ResultSink,
        kind: GroundingKind,
        prompt: str,
        token: CancellationToken | None = None,
    ) -> None:
        if not adapter.supports_grounding(kind):
            raise ValueError(f"{adapter.name} does not support {kind.value}")
        self._adapter = adapter
        self._transport = transport
        self._config = config
        self._sink = sink
        self._kind = kind
        self._prompt = prompt
        self.token = token or CancellationToken()

    def cancel(self) -> None:
        self.token.cancel()

    async def run(self) -> GroundingResult:
        body = self._adapter.build_grounding_request(self._prompt, self._config.model, self._kind)
        try:
            self.token.raise_if_cancelled()
            self._sink.request_built(1, body)
            response = await self._transport.send(
                self._adapter.endpoint(self._config),
                headers=self._adapter.headers(self._config),
                body=body,
                token=self.token,
            )
        except LoopCancelled:
            logger.info("grounding.cancelled kind={}", self._kind.value)
            return GroundingResult(grounded=None, cancelled=True)
        except TransportError as exc:
            self._sink.error(f"Error: {exc}", exc.raw_text, exc.content_type, exc.looks_like_html)
            return GroundingResult(grounded=None, error=str(exc))

        self._sink.response_received(1, response.json, response.duration_ms)
        parsed = self._adapter.parse_response(response.json)
        if not parsed.empty:
            self._sink.assistant_turn(1, parsed.display_content)

        grounded = self._adapter.detect_grounding(response.json, self._kind)
        logger.info("grounding.done kind={} grounded={}", self._kind.value, grounded)
        if grounded:
            self._sink.notice("success", GROUNDED_NOTICE)
        elif self._kind is GroundingKind.URL_CONTEXT:
            self._sink.notice("info", URL_NOT_GROUNDED_NOTICE)
        else:
            self._sink.notice("info", NOT_GROUNDED_NOTICE)
        return GroundingResult(grounded=grounded)
