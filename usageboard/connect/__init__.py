"""
Connect Module - AI Coding Platform Integrations

Connect to the Claude Code, OpenAI and Cursor admin APIs to pull
per-user usage and cost data.
"""

from usageboard.connect.base import (
    BaseConnector,
    MalformedResponseError,
    NormalizedRecord,
    Platform,
    ProviderError,
)
from usageboard.connect.claude import ClaudeConnector
from usageboard.connect.costs import CostMode
from usageboard.connect.cursor import CursorConnector
from usageboard.connect.openai import OpenAIConnector

__all__ = [
    "BaseConnector",
    "NormalizedRecord",
    "Platform",
    "ProviderError",
    "MalformedResponseError",
    "CostMode",
    "ClaudeConnector",
    "OpenAIConnector",
    "CursorConnector",
]
