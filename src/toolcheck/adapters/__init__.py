"""Vendor protocol adapters."""

from toolcheck.adapters.anthropic import AnthropicAdapter
from toolcheck.adapters.base import GroundingKind, ProtocolAdapter
from toolcheck.adapters.gemini import GeminiAdapter
from toolcheck.adapters.openai_chat import OpenAIChatAdapter
from toolcheck.adapters.openai_responses import OpenAIResponsesAdapter

__all__ = [
    "AnthropicAdapter",
    "GeminiAdapter",
    "GroundingKind",
    "OpenAIChatAdapter",
    "OpenAIResponsesAdapter",
    "ProtocolAdapter",
]
