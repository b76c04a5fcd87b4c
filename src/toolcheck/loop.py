"""Multi-turn tool-calling conversation loop."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from loguru import logger

from toolcheck.adapters.base import ProtocolAdapter
from toolcheck.errors import LoopCancelled, TransportError
from toolcheck.sink import ResultSink
from toolcheck.tools.executor import ToolExecutor
from toolcheck.tools.schema import DEFAULT_TOOLS, ToolSpec
from toolcheck.transport import CancellationToken, RequestTransport
from toolcheck.types import ConnectionConfig, ToolResult, ValidationOutcome, ValidationStatus

MAX_TURNS = 8
NO_SUBMISSION_NOTICE = "The model did not call the submit_answer tool; the flow ended early."


class LoopPhase(str, Enum):
    SENDING = "sending"
    AWAITING_RESPONSE = "awaiting_response"
    DISPATCHING = "dispatching"
    DONE = "done"


class StopReason(str, Enum):
    EMPTY_RESPONSE = "empty-response"
    FINISHED_WITHOUT_TOOLS = "model-finished-without-tools"
    ANSWER_SUBMITTED = "answer-submitted"
    MAX_TURNS = "max-turns"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class LoopResult:
    """Terminal summary of one conversation."""

    reason: StopReason
    turn: int
    round_trips: int
    outcome: ValidationOutcome | None
    answer_submitted: bool
    error: str | None = None

    @property
    def status(self) -> ValidationStatus | None:
        return self.outcome.status if self.outcome is not None else None


class ConversationLoop:
    """Drives one adapter through request, dispatch and re-injection turns.

    The loop never looks at which vendor it is talking to. It owns the
    conversation state, the expected answer (through its executor) and the
    validation outcome. A cancelled loop reports nothing to the sink.
    """

    def __init__(
        self,
        *,
        adapter: ProtocolAdapter,
        transport: RequestTransport,
        config: ConnectionConfig,
        sink: ResultSink,
        prompt: str,
        expected_answer: str | None,
        tools: Sequence[ToolSpec] = DEFAULT_TOOLS,
        max_turns: int = MAX_TURNS,
        continue_after_submit: bool = False,
        token: CancellationToken | None = None,
    ) -> None:
        self._adapter = adapter
        self._transport = transport
        self._config = config
        self._sink = sink
        self._tools = tuple(tools)
        self._max_turns = max_turns
        self._continue_after_submit = continue_after_submit
        self.token = token or CancellationToken()
        self.run_id = uuid.uuid4().hex[:8]
        self.outcome = ValidationOutcome()
        self.executor = ToolExecutor(expected_answer, self.outcome)
        self.state = adapter.seed(prompt)
        self.phase = LoopPhase.SENDING
        self.turn = 1
        self.round_trips = 0

    def cancel(self) -> None:
        self.token.cancel()

    async def run(self) -> LoopResult:
        with logger.contextualize(run=self.run_id):
            logger.info("loop.start adapter={} model={}", self._adapter.name, self._config.model)
            try:
                reason = await self._drive()
            except LoopCancelled:
                self.phase = LoopPhase.DONE
                logger.info("loop.cancelled turn={}", self.turn)
                return self._result(StopReason.CANCELLED, discard_outcome=True)
            except TransportError as exc:
                self.phase = LoopPhase.DONE
                logger.warning("loop.error turn={} error={}", self.turn, exc)
                self._sink.error(f"Error: {exc}", exc.raw_text, exc.content_type, exc.looks_like_html)
                return self._result(StopReason.ERROR, error=str(exc))

            self.phase = LoopPhase.DONE
            logger.info("loop.done reason={} turn={} status={}", reason.value, self.turn, self.outcome.status.value)
            self._report()
            return self._result(reason)

    async def _drive(self) -> StopReason:
        while self.turn <= self._max_turns:
            self.token.raise_if_cancelled()
            self.phase = LoopPhase.SENDING
            body = self._adapter.build_request(self.state, self._config.model, self._tools)
            self._sink.request_built(self.turn, body)

            self.phase = LoopPhase.AWAITING_RESPONSE
            logger.info("loop.turn.start turn={}", self.turn)
            response = await self._transport.send(
                self._adapter.endpoint(self._config),
                headers=self._adapter.headers(self._config),
                body=body,
                token=self.token,
            )
            self.round_trips += 1
            self._sink.response_received(self.turn, response.json, response.duration_ms)

            self.phase = LoopPhase.DISPATCHING
            parsed = self._adapter.parse_response(response.json)
            if parsed.empty:
                return StopReason.EMPTY_RESPONSE
            self._adapter.append_assistant(self.state, parsed)
            self._sink.assistant_turn(self.turn, parsed.display_content)
            if not parsed.tool_calls:
                return StopReason.FINISHED_WITHOUT_TOOLS

            results: list[ToolResult] = []
            for call in parsed.tool_calls:
                self.token.raise_if_cancelled()
                result = self.executor.run(call)
                results.append(result)
                self._sink.tool_executed(self.turn, call.name, result.payload())
            self._adapter.append_tool_results(self.state, parsed.tool_calls, results)

            if self.outcome.settled and not self._continue_after_submit:
                return StopReason.ANSWER_SUBMITTED
            self.turn += 1

        self.turn = self._max_turns
        return StopReason.MAX_TURNS

    def _report(self) -> None:
        if self.outcome.settled:
            self._sink.validation_outcome(self.outcome.status.value, self.outcome.message)
        elif not self.executor.answer_submitted:
            self._sink.notice("info", NO_SUBMISSION_NOTICE)

    def _result(
        self,
        reason: StopReason,
        *,
        discard_outcome: bool = False,
        error: str | None = None,
    ) -> LoopResult:
        return LoopResult(
            reason=reason,
            turn=self.turn,
            round_trips=self.round_trips,
            outcome=None if discard_outcome else self.outcome,
            answer_submitted=self.executor.answer_submitted,
            error=error,
        )
