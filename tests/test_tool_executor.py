import json

import pytest

from toolcheck.tools import executor as executor_module
from toolcheck.tools.executor import (
    CORRECT_SUMMARY,
    PASSED_MESSAGE,
    UNKNOWN_FUNCTION,
    ToolExecutor,
    failed_message,
)
from toolcheck.types import NormalizedToolCall, ValidationStatus


def _call(name: str, arguments: object, call_id: str = "call_1") -> NormalizedToolCall:
    raw = arguments if isinstance(arguments, str) else json.dumps(arguments)
    return NormalizedToolCall(call_id=call_id, name=name, arguments_json=raw)


def test_convert_base_hex_to_binary() -> None:
    result = ToolExecutor("255").run(_call("convert_base", {"number": "FF", "from_base": 16, "to_base": 2}))
    assert result.payload() == {"result": "11111111"}


def test_convert_base_accepts_lowercase_and_whitespace() -> None:
    result = ToolExecutor("255").run(_call("convert_base", {"number": " ff ", "from_base": 16, "to_base": 10}))
    assert result.result == "255"


def test_convert_base_invalid_digits_returns_error() -> None:
    result = ToolExecutor("255").run(_call("convert_base", {"number": "ZZ", "from_base": 16, "to_base": 2}))
    assert result.result is None
    assert result.error is not None
    assert result.error.startswith("Invalid input")


def test_convert_base_missing_argument_returns_error() -> None:
    result = ToolExecutor("255").run(_call("convert_base", {"from_base": 16, "to_base": 2}))
    assert result.error == "Missing argument: number"


def test_malformed_json_arguments_do_not_raise() -> None:
    result = ToolExecutor("255").run(_call("convert_base", "{not json"))
    assert result.error


def test_non_object_arguments_return_error() -> None:
    result = ToolExecutor("255").run(_call("convert_base", "[1, 2]"))
    assert result.error == "tool arguments must be a JSON object"


def test_unknown_function() -> None:
    executor = ToolExecutor("255")
    result = executor.run(_call("delete_everything", {}))
    assert result.payload() == {"error": UNKNOWN_FUNCTION}
    assert executor.answer_submitted is False


def test_submit_answer_is_case_insensitive() -> None:
    executor = ToolExecutor("FF")
    result = executor.run(_call("submit_answer", {"answer": "ff"}))

    assert result.payload() == {"success": True, "message": PASSED_MESSAGE}
    assert executor.answer_submitted is True
    assert executor.outcome.status is ValidationStatus.CORRECT
    assert executor.outcome.message == CORRECT_SUMMARY


def test_submit_wrong_answer_reports_expected() -> None:
    executor = ToolExecutor("255")
    result = executor.run(_call("submit_answer", {"answer": "256"}))

    assert result.success is False
    assert result.message == failed_message("255")
    assert executor.outcome.status is ValidationStatus.INCORRECT
    assert "256" in executor.outcome.message


def test_outcome_is_settled_once() -> None:
    executor = ToolExecutor("255")
    executor.run(_call("submit_answer", {"answer": "1"}))
    executor.run(_call("submit_answer", {"answer": "255"}))
    assert executor.outcome.status is ValidationStatus.INCORRECT


def test_submit_with_bad_arguments_still_counts_as_submitted() -> None:
    executor = ToolExecutor("255")
    result = executor.run(_call("submit_answer", "oops"))
    assert result.error
    assert executor.answer_submitted is True
    assert executor.outcome.status is ValidationStatus.PENDING


def test_pre_parsed_arguments_are_used() -> None:
    call = NormalizedToolCall(
        call_id="x",
        name="convert_base",
        arguments_json="ignored",
        arguments={"number": "377", "from_base": 8, "to_base": 16},
    )
    assert ToolExecutor(None).run(call).result == "FF"


def test_executor_logs_start_and_end(monkeypatch: pytest.MonkeyPatch) -> None:
    logs: list[str] = []

    def _capture(message: str, *args: object) -> None:
        logs.append(message)

    monkeypatch.setattr(executor_module.logger, "info", _capture)

    ToolExecutor("255").run(_call("convert_base", {"number": "FF", "from_base": 16, "to_base": 10}))
    assert logs.count("tool.call.start name={} call_id={} {{ {} }}") == 1
    assert logs.count("tool.call.end name={} duration={:.3f}ms") == 1


def test_infinite_base_returns_error() -> None:
    result = ToolExecutor("FF").run(_call("convert_base", '{"number": "1", "from_base": 1e999, "to_base": 2}'))
    assert result.result is None
    assert result.error


def test_deeply_nested_arguments_return_error() -> None:
    executor = ToolExecutor("FF")
    result = executor.run(_call("submit_answer", "[" * 100000 + "]" * 100000))
    assert result.error
    assert executor.answer_submitted is True
    assert executor.outcome.status is ValidationStatus.PENDING
