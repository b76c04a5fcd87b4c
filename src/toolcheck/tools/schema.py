"""Vendor-neutral declarations of the harness tools."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from typing import Any

CONVERT_BASE = "convert_base"
SUBMIT_ANSWER = "submit_answer"


@dataclass(frozen=True)
class ToolSpec:
    """Name, description and JSON schema of one callable tool."""

    name: str
    description: str
    parameters: dict[str, Any]

    def schema(self, *, strict: bool = False) -> dict[str, Any]:
        parameters = deepcopy(self.parameters)
        if strict:
            parameters["additionalProperties"] = False
        return parameters


CONVERT_BASE_SPEC = ToolSpec(
    name=CONVERT_BASE,
    description="Convert a number from one base to another",
    parameters={
        "type": "object",
        "properties": {
            "number": {"type": "string", "description": "The number to convert"},
            "from_base": {"type": "integer", "description": "Source base (e.g. 2, 10, 16)"},
            "to_base": {"type": "integer", "description": "Target base (e.g. 2, 10, 16)"},
        },
        "required": ["number", "from_base", "to_base"],
    },
)

SUBMIT_ANSWER_SPEC = ToolSpec(
    name=SUBMIT_ANSWER,
    description="Submit the final computed answer for verification",
    parameters={
        "type": "object",
        "properties": {
            "answer": {"type": "string", "description": "The final converted string"},
        },
        "required": ["answer"],
    },
)

DEFAULT_TOOLS: tuple[ToolSpec, ...] = (CONVERT_BASE_SPEC, SUBMIT_ANSWER_SPEC)
