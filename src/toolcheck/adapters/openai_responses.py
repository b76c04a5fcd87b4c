"""OpenAI Responses adapter."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from toolcheck.adapters.base import GroundingKind, ProtocolAdapter, as_dict, as_list, paired
from toolcheck.adapters.openai_chat import bearer_headers
from toolcheck.adapters.urls import join_endpoint
from toolcheck.tools.schema import ToolSpec
from toolcheck.types import ConnectionConfig, ConversationState, NormalizedToolCall, ParsedResponse, ToolResult


class OpenAIResponsesAdapter(ProtocolAdapter):
    """History is a flat item list; output items are appended as-is."""

    name = "openai-responses"
    grounding_kinds = frozenset({GroundingKind.WEB_SEARCH})

    def endpoint(self, config: ConnectionConfig) -> str:
        return join_endpoint(config.url, "/v1/responses")

    def headers(self, config: ConnectionConfig) -> dict[str, str]:
        return bearer_headers(config)

    def user_entry(self, prompt: str) -> dict[str, Any]:
        return {"role": "user", "content": prompt}

    def build_request(self, state: ConversationState, model: str, tools: Sequence[ToolSpec]) -> dict[str, Any]:
        return {
            "model": model,
            "tools": [
                {
                    "type": "function",
                    "name": tool.name,
                    "description": tool.description,
                    "strict": True,
                    "parameters": tool.schema(strict=True),
                }
                for tool in tools
            ],
            "input": state.snapshot(),
        }

    def parse_response(self, body: Any) -> ParsedResponse:
        data = as_dict(body)
        outputs = as_list(data.get("output"))
        if not outputs:
            return ParsedResponse(display_content=None)

        calls = [
            NormalizedToolCall(
                call_id=str(item.get("call_id", "")),
                name=str(item.get("name", "")),
                arguments_json=_arguments_json(item.get("arguments")),
            )
            for item in outputs
            if as_dict(item).get("type") == "function_call"
        ]
        return ParsedResponse(display_content=_display(data, outputs), tool_calls=calls, raw_assistant_fragment=outputs)

    def append_assistant(self, state: ConversationState, parsed: ParsedResponse) -> ConversationState:
        if not parsed.empty:
            state.entries.extend(parsed.raw_assistant_fragment)
        return state

    def append_tool_results(
        self,
        state: ConversationState,
        calls: Sequence[NormalizedToolCall],
        results: Sequence[ToolResult],
    ) -> ConversationState:
        for call, result in paired(calls, results):
            state.entries.append({"type": "function_call_output", "call_id": call.call_id, "output": result.to_json()})
        return state

    def build_grounding_request(self, prompt: str, model: str, kind: GroundingKind) -> dict[str, Any]:
        if kind is not GroundingKind.WEB_SEARCH:
            return super().build_grounding_request(prompt, model, kind)
        return {"model": model, "tools": [{"type": "web_search"}], "input": [self.user_entry(prompt)]}

    def detect_grounding(self, body: Any, kind: GroundingKind) -> bool:
        if kind is not GroundingKind.WEB_SEARCH:
            return super().detect_grounding(body, kind)
        return any(as_dict(item).get("type") == "web_search_call" for item in as_list(as_dict(body).get("output")))


def _display(data: dict[str, Any], outputs: list[Any]) -> Any:
    output_text = data.get("output_text")
    if isinstance(output_text, str) and output_text:
        return {"text": output_text}
    for item in outputs:
        item = as_dict(item)
        if item.get("type") == "message" and item.get("content"):
            return item["content"]
    return outputs


def _arguments_json(raw: Any) -> str:
    if isinstance(raw, str):
        return raw or "{}"
    if raw is None:
        return "{}"
    return json.dumps(raw, ensure_ascii=False)
