"""toolcheck - tool calling checks for LLM APIs."""

__version__ = "0.1.0"
