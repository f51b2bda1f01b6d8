"""
Interactive leaderboard: re-sort and filter the table from the keyboard.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from rich.console import Console
from rich.text import Text

from usageboard.connect.base import Platform
from usageboard.console import console as default_console
from usageboard.display.table import render_table_lines, sort_users
from usageboard.display.terminal import TerminalSession
from usageboard.see.models import MergedUser, SortKey

ALL = "all"

# Fixed cycling order for tab / arrow keys
FILTERS = [ALL, Platform.CLAUDE.value, Platform.OPENAI.value, Platform.CURSOR.value]
FILTER_LABELS = {
    ALL: "All",
    Platform.CLAUDE.value: Platform.CLAUDE.display_name,
    Platform.OPENAI.value: Platform.OPENAI.display_name,
    Platform.CURSOR.value: Platform.CURSOR.display_name,
}

QUIT_KEYS = {"q", "ctrl-c"}
SORT_KEYS = {
    "r": SortKey.REQUESTS,
    "t": SortKey.TOKENS,
    "c": SortKey.COST,
}
NUMBER_FILTERS = {str(i): f for i, f in enumerate(FILTERS, start=1)}
FORWARD_KEYS = {"tab", "right"}
BACKWARD_KEYS = {"shift-tab", "left"}

DIM = "\x1b[2m"
REVERSE = "\x1b[7m"
RESET = "\x1b[0m"


class Transition(str, Enum):
    QUIT = "quit"
    RENDER = "render"
    IGNORE = "ignore"


@dataclass
class SessionState:
    """Everything the interactive view shows. all_users never changes."""
    all_users: tuple[MergedUser, ...]
    days: int
    sort_key: SortKey = SortKey.REQUESTS
    filter_key: str = ALL

    def visible_users(self) -> list[MergedUser]:
        if self.filter_key == ALL:
            users = list(self.all_users)
        else:
            platform = Platform(self.filter_key)
            users = [u for u in self.all_users if platform in u.platforms]
        return sort_users(users, self.sort_key)


def handle_key(state: SessionState, key: str) -> Transition:
    """Apply one key press to the state."""
    if key in QUIT_KEYS:
        return Transition.QUIT

    if key in SORT_KEYS:
        state.sort_key = SORT_KEYS[key]
    elif key in NUMBER_FILTERS:
        state.filter_key = NUMBER_FILTERS[key]
    elif key in FORWARD_KEYS:
        state.filter_key = _cycle(state.filter_key, 1)
    elif key in BACKWARD_KEYS:
        state.filter_key = _cycle(state.filter_key, -1)
    elif key != "resize":
        return Transition.IGNORE

    return Transition.RENDER


def _cycle(current: str, step: int) -> str:
    return FILTERS[(FILTERS.index(current) + step) % len(FILTERS)]


def render_filter_bar(filter_key: str) -> str:
    tabs = []
    for f in FILTERS:
        label = f"[ {FILTER_LABELS[f]} ]"
        tabs.append(f"{REVERSE}{label}{RESET}" if f == filter_key else label)
    return "  Filter: " + "  ".join(tabs)


def render_hint_bar() -> str:
    return f"{DIM}  Sort: r=Requests  t=Tokens  c=Cost    Filter: Tab/1-4    q=Quit{RESET}"


def render_screen(state: SessionState) -> list[str]:
    """Full screen contents for the current state."""
    table = render_table_lines(state.visible_users(), state.days, state.sort_key)
    return [
        table[0],
        "",
        render_filter_bar(state.filter_key),
        render_hint_bar(),
        "",
        *table[1:],
    ]


def draw(state: SessionState, console: Console) -> None:
    console.clear()
    for line in render_screen(state):
        console.print(Text.from_ansi(line), soft_wrap=True)


def run_session(state: SessionState, events: Iterable[str], console: Console) -> None:
    """Draw, then handle one event at a time until a quit key or Ctrl-C."""
    draw(state, console)
    try:
        for key in events:
            transition = handle_key(state, key)
            if transition is Transition.QUIT:
                return
            if transition is Transition.RENDER:
                draw(state, console)
    except KeyboardInterrupt:
        return


def run_interactive(
    users: list[MergedUser],
    days: int,
    sort_key: SortKey,
    events: Optional[Iterable[str]] = None,
    console: Optional[Console] = None,
) -> SessionState:
    """
    Run the interactive leaderboard until the user quits.

    When no event source is given, keys are read from the terminal, which is
    restored on the way out however the session ends.
    """
    console = console or default_console
    state = SessionState(all_users=tuple(users), days=days, sort_key=SortKey(sort_key))

    if events is not None:
        run_session(state, events, console)
        return state

    with TerminalSession(console=console) as terminal:
        run_session(state, terminal.events(), console)
    return state
