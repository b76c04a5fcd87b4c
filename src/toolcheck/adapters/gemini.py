"""Google Gemini generateContent adapter."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

from toolcheck.adapters.base import GroundingKind, ProtocolAdapter, as_dict, as_list, paired
from toolcheck.adapters.urls import strip_trailing_slash
from toolcheck.tools.schema import ToolSpec
from toolcheck.types import ConnectionConfig, ConversationState, NormalizedToolCall, ParsedResponse, ToolResult

SYSTEM_INSTRUCTION = (
    "You are a helpful assistant. You can call the convert_base tool, and once you have the final "
    "result you must call the submit_answer tool to submit the final answer."
)

_GROUNDING_TOOLS: dict[GroundingKind, dict[str, Any]] = {
    GroundingKind.GOOGLE_SEARCH: {"googleSearch": {}},
    GroundingKind.URL_CONTEXT: {"urlContext": {}},
}


class GeminiAdapter(ProtocolAdapter):
    """Results are matched to calls by function name; the key rides in the query string."""

    name = "gemini"
    grounding_kinds = frozenset(_GROUNDING_TOOLS)

    def endpoint(self, config: ConnectionConfig) -> str:
        root = strip_trailing_slash(config.url)
        model = quote(config.model, safe="")
        return f"{root}/v1beta/models/{model}:generateContent?key={quote(config.key, safe='')}"

    def user_entry(self, prompt: str) -> dict[str, Any]:
        return {"role": "user", "parts": [{"text": prompt}]}

    def build_request(self, state: ConversationState, model: str, tools: Sequence[ToolSpec]) -> dict[str, Any]:
        return {
            "systemInstruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
            "tools": [
                {
                    "functionDeclarations": [
                        {"name": tool.name, "description": tool.description, "parameters": tool.schema()}
                        for tool in tools
                    ]
                }
            ],
            "toolConfig": {"functionCallingConfig": {"mode": "AUTO"}},
            "contents": state.snapshot(),
        }

    def parse_response(self, body: Any) -> ParsedResponse:
        candidates = as_list(as_dict(body).get("candidates"))
        content = as_dict(as_dict(candidates[0]).get("content")) if candidates else {}
        if not content:
            return ParsedResponse(display_content=None)

        calls: list[NormalizedToolCall] = []
        for index, entry in enumerate(as_list(content.get("parts"))):
            function_call = as_dict(as_dict(entry).get("functionCall"))
            if not function_call:
                continue
            name = str(function_call.get("name", ""))
            arguments = as_dict(function_call.get("args"))
            calls.append(
                NormalizedToolCall(
                    call_id=str(function_call.get("id") or f"{name}-{index}"),
                    name=name,
                    arguments_json=json.dumps(arguments, ensure_ascii=False),
                    arguments=arguments,
                )
            )
        return ParsedResponse(display_content=content, tool_calls=calls, raw_assistant_fragment=content)

    def append_tool_results(
        self,
        state: ConversationState,
        calls: Sequence[NormalizedToolCall],
        results: Sequence[ToolResult],
    ) -> ConversationState:
        parts = [
            {"functionResponse": {"name": call.name, "response": result.payload()}}
            for call, result in paired(calls, results)
        ]
        if parts:
            state.entries.append({"role": "function", "parts": parts})
        return state

    def build_grounding_request(self, prompt: str, model: str, kind: GroundingKind) -> dict[str, Any]:
        tool = _GROUNDING_TOOLS.get(kind)
        if tool is None:
            return super().build_grounding_request(prompt, model, kind)
        return {"tools": [dict(tool)], "contents": [self.user_entry(prompt)]}

    def detect_grounding(self, body: Any, kind: GroundingKind) -> bool:
        if kind not in _GROUNDING_TOOLS:
            return super().detect_grounding(body, kind)
        candidates = as_list(as_dict(body).get("candidates"))
        candidate = as_dict(candidates[0]) if candidates else {}
        if candidate.get("groundingMetadata"):
            return True
        return kind is GroundingKind.URL_CONTEXT and bool(candidate.get("urlContextMetadata"))
