"""
Display Module - Leaderboard table and interactive view
"""

from usageboard.display.interactive import SessionState, handle_key, run_interactive
from usageboard.display.table import (
    format_cost,
    format_tokens,
    print_table,
    render_table_lines,
    sort_users,
)

__all__ = [
    "SessionState",
    "handle_key",
    "run_interactive",
    "format_cost",
    "format_tokens",
    "print_table",
    "render_table_lines",
    "sort_users",
]
