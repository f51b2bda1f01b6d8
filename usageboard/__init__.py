"""
usageboard - AI Coding Usage Leaderboard

See who uses Claude Code, OpenAI and Cursor the most, ranked by requests,
tokens or cost.
"""

__version__ = "0.1.0"

from usageboard.connect import ClaudeConnector, CursorConnector, OpenAIConnector
from usageboard.see import UsageAggregator, merge_by_email

__all__ = [
    "ClaudeConnector",
    "OpenAIConnector",
    "CursorConnector",
    "UsageAggregator",
    "merge_by_email",
]
