"""Harness tools: declarations and local executor."""

from toolcheck.tools.executor import ToolExecutor
from toolcheck.tools.schema import CONVERT_BASE, DEFAULT_TOOLS, SUBMIT_ANSWER, ToolSpec

__all__ = ["CONVERT_BASE", "DEFAULT_TOOLS", "SUBMIT_ANSWER", "ToolExecutor", "ToolSpec"]
