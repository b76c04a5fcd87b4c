import asyncio
import json

import pytest
from conftest import BLOCK

from toolcheck.adapters import AnthropicAdapter, GeminiAdapter, OpenAIChatAdapter, OpenAIResponsesAdapter
from toolcheck.errors import HttpStatusError
from toolcheck.loop import MAX_TURNS, NO_SUBMISSION_NOTICE, ConversationLoop, StopReason
from toolcheck.tasks import TaskGenerator
from toolcheck.types import ValidationStatus

TASK = TaskGenerator.build(255, (16, 2, 10))


def chat_tool_call(call_id: str, name: str, arguments: dict) -> dict:
    return {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [
                        {
                            "id": call_id,
                            "type": "function",
                            "function": {"name": name, "arguments": json.dumps(arguments)},
                        }
                    ],
                },
                "finish_reason": "tool_calls",
            }
        ]
    }


def chat_text(text: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": text}, "finish_reason": "stop"}]}


CONVERT = chat_tool_call("call_1", "convert_base", {"number": "FF", "from_base": 16, "to_base": 2})
SUBMIT = chat_tool_call("call_2", "submit_answer", {"answer": "255"})


def _loop(adapter, transport, connection, sink, **kwargs) -> ConversationLoop:
    return ConversationLoop(
        adapter=adapter,
        transport=transport,
        config=connection,
        sink=sink,
        prompt=TASK.prompt,
        expected_answer=TASK.expected_answer,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_chat_round_trip_ends_correct_at_turn_two(scripted, connection, sink) -> None:
    transport = scripted(CONVERT, SUBMIT)
    result = await _loop(OpenAIChatAdapter(), transport, connection, sink).run()

    assert result.reason is StopReason.ANSWER_SUBMITTED
    assert result.status is ValidationStatus.CORRECT
    assert result.turn == 2
    assert result.round_trips == 2
    assert sink.of_kind("error") == []
    assert sink.kinds()[-1] == "validation_outcome"
    assert sink.of_kind("validation_outcome")[0].data["status"] == "correct"

    second = transport.sent[1].body["messages"]
    assert [message["role"] for message in second] == ["user", "assistant", "tool"]
    assert second[2]["tool_call_id"] == "call_1"
    assert json.loads(second[2]["content"]) == {"result": "11111111"}
    assert transport.sent[0].url == "https://api.example.com/v1/chat/completions"


@pytest.mark.asyncio
async def test_event_order_per_turn(scripted, connection, sink) -> None:
    await _loop(OpenAIChatAdapter(), scripted(CONVERT, SUBMIT), connection, sink).run()
    turn = ["request_built", "response_received", "assistant_turn", "tool_executed"]
    assert sink.kinds() == [*turn, *turn, "validation_outcome"]


@pytest.mark.asyncio
async def test_wrong_answer_is_incorrect(scripted, connection, sink) -> None:
    wrong = chat_tool_call("call_9", "submit_answer", {"answer": "256"})
    result = await _loop(OpenAIChatAdapter(), scripted(wrong), connection, sink).run()

    assert result.status is ValidationStatus.INCORRECT
    executed = sink.of_kind("tool_executed")[0].data["result"]
    assert executed["success"] is False
    assert "255" in executed["message"]


@pytest.mark.asyncio
async def test_max_turns_caps_round_trips(scripted, connection, sink) -> None:
    transport = scripted(CONVERT, repeat_last=True)
    result = await _loop(OpenAIChatAdapter(), transport, connection, sink).run()

    assert result.reason is StopReason.MAX_TURNS
    assert result.round_trips == MAX_TURNS
    assert len(transport.sent) == MAX_TURNS
    assert result.turn == MAX_TURNS
    assert result.status is ValidationStatus.PENDING
    assert sink.of_kind("notice")[0].data["message"] == NO_SUBMISSION_NOTICE


@pytest.mark.asyncio
async def test_custom_turn_limit(scripted, connection, sink) -> None:
    transport = scripted(CONVERT, repeat_last=True)
    result = await _loop(OpenAIChatAdapter(), transport, connection, sink, max_turns=3).run()
    assert result.round_trips == 3


@pytest.mark.asyncio
async def test_empty_response_stops_without_assistant_turn(scripted, connection, sink) -> None:
    result = await _loop(OpenAIChatAdapter(), scripted({"choices": []}), connection, sink).run()

    assert result.reason is StopReason.EMPTY_RESPONSE
    assert "assistant_turn" not in sink.kinds()
    assert sink.of_kind("notice")[0].data["level"] == "info"


@pytest.mark.asyncio
async def test_text_only_reply_ends_the_loop(scripted, connection, sink) -> None:
    result = await _loop(OpenAIChatAdapter(), scripted(chat_text("It is 255.")), connection, sink).run()

    assert result.reason is StopReason.FINISHED_WITHOUT_TOOLS
    assert result.answer_submitted is False
    assert sink.of_kind("assistant_turn")[0].data["content"]["content"] == "It is 255."
    assert sink.of_kind("notice")[0].data["message"] == NO_SUBMISSION_NOTICE


@pytest.mark.asyncio
async def test_continue_after_submit_keeps_conversing(scripted, connection, sink) -> None:
    transport = scripted(SUBMIT, chat_text("Submitted."))
    result = await _loop(OpenAIChatAdapter(), transport, connection, sink, continue_after_submit=True).run()

    assert result.reason is StopReason.FINISHED_WITHOUT_TOOLS
    assert result.status is ValidationStatus.CORRECT
    assert result.round_trips == 2


@pytest.mark.asyncio
async def test_transport_error_is_reported_once(scripted, connection, sink) -> None:
    failure = HttpStatusError(502, raw_text="<html><body>Bad gateway</body></html>", content_type="text/html")
    result = await _loop(OpenAIChatAdapter(), scripted(CONVERT, failure), connection, sink).run()

    assert result.reason is StopReason.ERROR
    assert result.error == "HTTP 502"
    errors = sink.of_kind("error")
    assert len(errors) == 1
    assert errors[0].data["html"] is True
    assert errors[0].data["message"] == "Error: HTTP 502"
    assert "validation_outcome" not in sink.kinds()
    assert "notice" not in sink.kinds()


@pytest.mark.asyncio
async def test_cancel_during_request_reports_nothing(scripted, connection, sink) -> None:
    loop = _loop(OpenAIChatAdapter(), scripted(CONVERT, BLOCK), connection, sink)
    pending = asyncio.create_task(loop.run())
    while len(sink.of_kind("request_built")) < 2:
        await asyncio.sleep(0)
    loop.cancel()
    loop.cancel()
    result = await asyncio.wait_for(pending, timeout=5)

    assert result.reason is StopReason.CANCELLED
    assert result.outcome is None
    assert "validation_outcome" not in sink.kinds()
    assert "notice" not in sink.kinds()
    assert "error" not in sink.kinds()


@pytest.mark.asyncio
async def test_responses_round_trip(scripted, connection, sink) -> None:
    first = {
        "output": [
            {
                "type": "function_call",
                "call_id": "fc_1",
                "name": "convert_base",
                "arguments": '{"number":"FF","from_base":16,"to_base":2}',
            }
        ]
    }
    second = {
        "output": [
            {"type": "function_call", "call_id": "fc_2", "name": "submit_answer", "arguments": '{"answer":"255"}'}
        ]
    }
    transport = scripted(first, second)
    result = await _loop(OpenAIResponsesAdapter(), transport, connection, sink).run()

    assert result.status is ValidationStatus.CORRECT
    history = transport.sent[1].body["input"]
    assert history[1]["call_id"] == "fc_1"
    assert history[2] == {"type": "function_call_output", "call_id": "fc_1", "output": '{"result": "11111111"}'}


@pytest.mark.asyncio
async def test_anthropic_round_trip_with_parallel_calls(scripted, connection, sink) -> None:
    first = {
        "content": [
            {
                "type": "tool_use",
                "id": "toolu_1",
                "name": "convert_base",
                "input": {"number": "FF", "from_base": 16, "to_base": 2},
            },
            {
                "type": "tool_use",
                "id": "toolu_2",
                "name": "convert_base",
                "input": {"number": "11111111", "from_base": 2, "to_base": 10},
            },
        ],
        "stop_reason": "tool_use",
    }
    second = {"content": [{"type": "tool_use", "id": "toolu_3", "name": "submit_answer", "input": {"answer": "255"}}]}
    transport = scripted(first, second)
    result = await _loop(AnthropicAdapter(), transport, connection, sink).run()

    assert result.status is ValidationStatus.CORRECT
    assert transport.sent[0].headers["x-api-key"] == "sk-test"
    messages = transport.sent[1].body["messages"]
    assert len(messages) == 3
    blocks = messages[2]["content"]
    assert [block["tool_use_id"] for block in blocks] == ["toolu_1", "toolu_2"]
    assert json.loads(blocks[1]["content"]) == {"result": "255"}


@pytest.mark.asyncio
async def test_gemini_round_trip(scripted, connection, sink) -> None:
    def candidate(name: str, args: dict) -> dict:
        part = {"functionCall": {"name": name, "args": args}}
        return {"candidates": [{"content": {"role": "model", "parts": [part]}}]}

    transport = scripted(
        candidate("convert_base", {"number": "FF", "from_base": 16, "to_base": 2}),
        candidate("submit_answer", {"answer": "255"}),
    )
    result = await _loop(GeminiAdapter(), transport, connection, sink).run()

    assert result.status is ValidationStatus.CORRECT
    assert transport.sent[0].url.endswith(":generateContent?key=sk-test")
    contents = transport.sent[1].body["contents"]
    assert [entry["role"] for entry in contents] == ["user", "model", "function"]
    assert contents[2]["parts"][0]["functionResponse"]["response"] == {"result": "11111111"}


@pytest.mark.asyncio
async def test_requests_are_snapshots(scripted, connection, sink) -> None:
    transport = scripted(CONVERT, SUBMIT)
    await _loop(OpenAIChatAdapter(), transport, connection, sink).run()
    first_request = sink.of_kind("request_built")[0].data["body"]
    assert len(first_request["messages"]) == 1


@pytest.mark.asyncio
async def test_overflowing_and_nested_arguments_become_tool_errors(scripted, connection, sink) -> None:
    overflow = {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [
                        {
                            "id": "call_inf",
                            "type": "function",
                            "function": {
                                "name": "convert_base",
                                "arguments": '{"number": "1", "from_base": 1e999, "to_base": 2}',
                            },
                        },
                        {
                            "id": "call_deep",
                            "type": "function",
                            "function": {"name": "convert_base", "arguments": "[" * 100000 + "]" * 100000},
                        },
                    ],
                }
            }
        ]
    }
    transport = scripted(overflow, chat_text("Giving up."))
    result = await _loop(OpenAIChatAdapter(), transport, connection, sink).run()

    assert result.reason is StopReason.FINISHED_WITHOUT_TOOLS
    assert result.round_trips == 2
    executed = [event.data["result"] for event in sink.of_kind("tool_executed")]
    assert len(executed) == 2
    assert all("error" in item for item in executed)
    tool_messages = [m for m in transport.sent[1].body["messages"] if m["role"] == "tool"]
    assert [m["tool_call_id"] for m in tool_messages] == ["call_inf", "call_deep"]
    assert sink.of_kind("error") == []
