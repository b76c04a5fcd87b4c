"""Anthropic Messages adapter."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from toolcheck.adapters.base import ProtocolAdapter, as_dict, as_list, paired
from toolcheck.adapters.urls import join_endpoint
from toolcheck.tools.schema import ToolSpec
from toolcheck.types import ConnectionConfig, ConversationState, NormalizedToolCall, ParsedResponse, ToolResult

ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 4096


class AnthropicAdapter(ProtocolAdapter):
    """All ``tool_result`` blocks of one turn go back in a single user message."""

    name = "anthropic"

    def __init__(self, *, max_tokens: int = DEFAULT_MAX_TOKENS, version: str = ANTHROPIC_VERSION) -> None:
        self.max_tokens = max_tokens
        self.version = version

    def endpoint(self, config: ConnectionConfig) -> str:
        return join_endpoint(config.url, "/v1/messages")

    def headers(self, config: ConnectionConfig) -> dict[str, str]:
        return {"Content-Type": "application/json", "x-api-key": config.key, "anthropic-version": self.version}

    def user_entry(self, prompt: str) -> dict[str, Any]:
        return {"role": "user", "content": prompt}

    def build_request(self, state: ConversationState, model: str, tools: Sequence[ToolSpec]) -> dict[str, Any]:
        return {
            "model": model,
            "max_tokens": self.max_tokens,
            "messages": state.snapshot(),
            "tools": [
                {"name": tool.name, "description": tool.description, "input_schema": tool.schema()} for tool in tools
            ],
        }

    def parse_response(self, body: Any) -> ParsedResponse:
        content = as_list(as_dict(body).get("content"))
        if not content:
            return ParsedResponse(display_content=None)

        calls: list[NormalizedToolCall] = []
        for entry in content:
            block = as_dict(entry)
            if block.get("type") != "tool_use":
                continue
            arguments = as_dict(block.get("input"))
            calls.append(
                NormalizedToolCall(
                    call_id=str(block.get("id", "")),
                    name=str(block.get("name", "")),
                    arguments_json=json.dumps(arguments, ensure_ascii=False),
                    arguments=arguments,
                )
            )
        return ParsedResponse(
            display_content=content,
            tool_calls=calls,
            raw_assistant_fragment={"role": "assistant", "content": content},
        )

    def append_tool_results(
        self,
        state: ConversationState,
        calls: Sequence[NormalizedToolCall],
        results: Sequence[ToolResult],
    ) -> ConversationState:
        blocks = [
            # tool_result content accepts a string or content blocks, not a bare object
            {"type": "tool_result", "tool_use_id": call.call_id, "content": result.to_json()}
            for call, result in paired(calls, results)
        ]
        if blocks:
            state.entries.append({"role": "user", "content": blocks})
        return state
