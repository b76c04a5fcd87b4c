"""Local execution of the harness tools."""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from typing import Any

from loguru import logger

from toolcheck.tasks import render_in_base
from toolcheck.tools.schema import CONVERT_BASE, SUBMIT_ANSWER
from toolcheck.types import NormalizedToolCall, ToolResult, ValidationOutcome

UNKNOWN_FUNCTION = "Unknown function"
PASSED_MESSAGE = "Verification passed! The answer is correct."
CORRECT_SUMMARY = "After multiple rounds of tool calls the model completed the task and the final answer is correct."


def _shorten_text(text: str, width: int = 30, placeholder: str = "...") -> str:
    if len(text) <= width:
        return text
    available = width - len(placeholder)
    if available <= 0:
        return placeholder
    return text[:available] + placeholder


def failed_message(expected: str) -> str:
    return f"Verification failed. Expected result: {expected}"


def incorrect_summary(submitted: str) -> str:
    return (
        "After multiple rounds of tool calls the model attempted the task, "
        f"but the submitted answer is wrong (submitted: {submitted})."
    )


class ToolExecutor:
    """Runs ``convert_base`` and ``submit_answer`` for one conversation.

    The executor knows nothing about wire protocols. It receives normalized
    calls, returns a :class:`ToolResult` for every one of them and never
    raises: malformed arguments become a result with ``error`` set.
    """

    def __init__(self, expected_answer: str | None, outcome: ValidationOutcome | None = None) -> None:
        self._expected_answer = expected_answer.upper() if expected_answer is not None else None
        self.outcome = outcome or ValidationOutcome()
        self.answer_submitted = False
        self._handlers: dict[str, Callable[[dict[str, Any]], ToolResult]] = {
            CONVERT_BASE: self._convert_base,
            SUBMIT_ANSWER: self._submit_answer,
        }

    def run(self, call: NormalizedToolCall) -> ToolResult:
        handler = self._handlers.get(call.name)
        if handler is None:
            logger.warning("tool.call.unknown name={} call_id={}", call.name, call.call_id)
            return ToolResult(name=call.name, error=UNKNOWN_FUNCTION)

        if call.name == SUBMIT_ANSWER:
            self.answer_submitted = True

        start = time.monotonic()
        try:
            self._log_call(call)
            arguments = call.parsed_arguments()
            return handler(arguments)
        except (ValueError, TypeError, KeyError, ArithmeticError, RecursionError) as exc:
            logger.info("tool.call.error name={} error={!r}", call.name, exc)
            return ToolResult(name=call.name, error=_error_text(exc))
        finally:
            duration = time.monotonic() - start
            logger.info("tool.call.end name={} duration={:.3f}ms", call.name, duration * 1000)

    def convert_base(self, number: str, from_base: int, to_base: int) -> ToolResult:
        return self._convert_base({"number": number, "from_base": from_base, "to_base": to_base})

    def submit_answer(self, answer: str) -> ToolResult:
        self.answer_submitted = True
        return self._submit_answer({"answer": answer})

    def _convert_base(self, arguments: dict[str, Any]) -> ToolResult:
        number = str(arguments["number"]).strip()
        from_base = int(arguments["from_base"])
        to_base = int(arguments["to_base"])
        try:
            value = int(number, from_base)
        except ValueError:
            return ToolResult(name=CONVERT_BASE, error=f"Invalid input: {number!r} is not a base-{from_base} number")
        return ToolResult(name=CONVERT_BASE, result=render_in_base(value, to_base))

    def _submit_answer(self, arguments: dict[str, Any]) -> ToolResult:
        submitted = str(arguments["answer"])
        correct = self._expected_answer is not None and submitted.strip().upper() == self._expected_answer
        if correct:
            self.outcome.settle(True, CORRECT_SUMMARY)
            return ToolResult(name=SUBMIT_ANSWER, success=True, message=PASSED_MESSAGE)
        self.outcome.settle(False, incorrect_summary(submitted))
        return ToolResult(name=SUBMIT_ANSWER, success=False, message=failed_message(self._expected_answer or ""))

    def _log_call(self, call: NormalizedToolCall) -> None:
        try:
            params = call.parsed_arguments()
        except (ValueError, TypeError):
            rendered = _shorten_text(call.arguments_json)
        else:
            rendered = ", ".join(
                f"{key}={_shorten_text(json.dumps(value, ensure_ascii=False))}" for key, value in params.items()
            )
        logger.info("tool.call.start name={} call_id={} {{ {} }}", call.name, call.call_id, rendered)


def _error_text(exc: Exception) -> str:
    if isinstance(exc, KeyError):
        return f"Missing argument: {exc.args[0]}"
    return str(exc) or type(exc).__name__
