"""
Leaderboard ranking and fixed-width table rendering.
"""

from dataclasses import dataclass, field
from typing import Optional

from rich.console import Console
from rich.text import Text

from usageboard.console import console as default_console
from usageboard.see.models import MergedUser, SortKey

UNDERLINE = "\x1b[4m"
RESET = "\x1b[0m"

DOUBLE_RULE = "═"
SINGLE_RULE = "─"
COLUMN_GAP = "   "

# Column order, header label and minimum width
COLUMNS = [
    ("rank", "#", 2),
    ("email", "User", 4),
    ("requests", "Requests", 8),
    ("tokens", "Tokens", 6),
    ("cost", "Cost", 6),
    ("tools", "Tools", 5),
]
RIGHT_ALIGNED = {"rank", "requests", "tokens", "cost"}
SORT_COLUMNS = {
    SortKey.REQUESTS: "requests",
    SortKey.TOKENS: "tokens",
    SortKey.COST: "cost",
}


def sort_users(users: list[MergedUser], sort_key: SortKey) -> list[MergedUser]:
    """Return a new list ranked by sort_key, highest first. Ties keep input order."""
    attribute = SortKey(sort_key).attribute
    return sorted(users, key=lambda u: getattr(u, attribute), reverse=True)


def format_tokens(n: int) -> str:
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 1_000:
        return f"{n / 1_000:.1f}K"
    return str(n)


def format_cost(cents: int) -> str:
    return f"${cents / 100:.2f}"


@dataclass
class DisplayRow:
    """Formatted cells for one leaderboard row."""
    rank: str
    email: str
    requests: str
    tokens: str
    cost: str
    tools: str
    sub_rows: list["DisplayRow"] = field(default_factory=list)


def build_rows(users: list[MergedUser]) -> list[DisplayRow]:
    rows = []
    for i, user in enumerate(users, start=1):
        sub_rows = []
        if len(user.by_platform) > 1:
            sub_rows = [
                DisplayRow(
                    rank="",
                    email="  " + platform.display_name,
                    requests=str(usage.requests),
                    tokens=format_tokens(usage.tokens),
                    cost=format_cost(usage.cost_cents),
                    tools="",
                )
                for platform, usage in user.by_platform.items()
            ]

        rows.append(DisplayRow(
            rank=str(i),
            email=user.email,
            requests=str(user.requests),
            tokens=format_tokens(user.tokens),
            cost=format_cost(user.cost_cents),
            tools=", ".join(user.platform_names),
            sub_rows=sub_rows,
        ))
    return rows


def column_widths(rows: list[DisplayRow]) -> dict[str, int]:
    """Widest main-row value per column, never below the column minimum."""
    return {
        name: max([minimum] + [len(getattr(row, name)) for row in rows])
        for name, _, minimum in COLUMNS
    }


def _cell(value: str, name: str, width: int) -> str:
    if name in RIGHT_ALIGNED:
        return value.rjust(width)
    return value.ljust(width)


def _format_row(row: DisplayRow, widths: dict[str, int]) -> str:
    cells = [_cell(getattr(row, name), name, widths[name]) for name, _, _ in COLUMNS]
    return " " + COLUMN_GAP.join(cells)


def _format_header(widths: dict[str, int], sort_key: SortKey) -> str:
    active = SORT_COLUMNS[SortKey(sort_key)]
    cells = []
    for name, label, _ in COLUMNS:
        if name == "rank":
            cell = label.rjust(widths[name])
        else:
            padding = " " * (widths[name] - len(label))
            # Escape codes take no screen width, so pad on the raw label
            cell = f"{UNDERLINE}{label}{RESET}{padding}" if name == active else label + padding
        cells.append(cell)
    return " " + COLUMN_GAP.join(cells)


def render_table_lines(users: list[MergedUser], days: int, sort_key: SortKey) -> list[str]:
    """
    Render the leaderboard as a list of lines.

    Layout: title, double rule, header, single rule, one line per user (plus
    one indented line per platform for users on more than one platform),
    closing double rule. Users are rendered in the order given.
    """
    rows = build_rows(users)
    widths = column_widths(rows)
    total_width = sum(widths.values()) + len(COLUMN_GAP) * (len(COLUMNS) - 1)

    double_line = DOUBLE_RULE * total_width

    lines = [
        f"AI Coding Usage Leaderboard  |  Last {days} days",
        double_line,
        _format_header(widths, sort_key),
        SINGLE_RULE * total_width,
    ]

    for row in rows:
        lines.append(_format_row(row, widths))
        for sub_row in row.sub_rows:
            lines.append(_format_row(sub_row, widths))

    lines.append(double_line)
    return lines


def print_table(
    users: list[MergedUser],
    days: int,
    sort_key: SortKey,
    console: Optional[Console] = None,
) -> None:
    """Print the leaderboard to the console."""
    console = console or default_console
    for line in render_table_lines(users, days, sort_key):
        console.print(Text.from_ansi(line), soft_wrap=True)
