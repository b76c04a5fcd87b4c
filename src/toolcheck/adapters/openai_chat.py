"""OpenAI Chat Completions adapter."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from toolcheck.adapters.base import ProtocolAdapter, as_dict, as_list, paired
from toolcheck.adapters.urls import join_endpoint
from toolcheck.tools.schema import ToolSpec
from toolcheck.types import ConnectionConfig, ConversationState, NormalizedToolCall, ParsedResponse, ToolResult


def bearer_headers(config: ConnectionConfig) -> dict[str, str]:
    return {"Content-Type": "application/json", "Authorization": f"Bearer {config.key}"}


class OpenAIChatAdapter(ProtocolAdapter):
    name = "openai-chat"

    def endpoint(self, config: ConnectionConfig) -> str:
        return join_endpoint(config.url, "/v1/chat/completions")

    def headers(self, config: ConnectionConfig) -> dict[str, str]:
        return bearer_headers(config)

    def user_entry(self, prompt: str) -> dict[str, Any]:
        return {"role": "user", "content": prompt}

    def build_request(self, state: ConversationState, model: str, tools: Sequence[ToolSpec]) -> dict[str, Any]:
        return {
            "model": model,
            "messages": state.snapshot(),
            "tools": [
                {
                    "type": "function",
                    "function": {"name": tool.name, "description": tool.description, "parameters": tool.schema()},
                }
                for tool in tools
            ],
            "tool_choice": "auto",
        }

    def parse_response(self, body: Any) -> ParsedResponse:
        choices = as_list(as_dict(body).get("choices"))
        if not choices:
            return ParsedResponse(display_content=None)
        message = as_dict(as_dict(choices[0]).get("message"))
        if not message:
            return ParsedResponse(display_content=None)

        calls: list[NormalizedToolCall] = []
        for entry in as_list(message.get("tool_calls")):
            item = as_dict(entry)
            function = as_dict(item.get("function"))
            raw_arguments = function.get("arguments")
            if isinstance(raw_arguments, dict):
                calls.append(
                    NormalizedToolCall(
                        call_id=str(item.get("id", "")),
                        name=str(function.get("name", "")),
                        arguments_json=json.dumps(raw_arguments, ensure_ascii=False),
                        arguments=raw_arguments,
                    )
                )
                continue
            calls.append(
                NormalizedToolCall(
                    call_id=str(item.get("id", "")),
                    name=str(function.get("name", "")),
                    arguments_json=raw_arguments or "{}",
                )
            )
        return ParsedResponse(display_content=message, tool_calls=calls, raw_assistant_fragment=message)

    def append_tool_results(
        self,
        state: ConversationState,
        calls: Sequence[NormalizedToolCall],
        results: Sequence[ToolResult],
    ) -> ConversationState:
        for call, result in paired(calls, results):
            state.entries.append({"role": "tool", "tool_call_id": call.call_id, "content": result.to_json()})
        return state
