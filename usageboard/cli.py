"""
usageboard CLI - AI coding usage leaderboard.
"""

import asyncio
import json
import sys
import termios
from datetime import datetime, timedelta, timezone
from typing import Optional

import typer
from rich.progress import Progress, SpinnerColumn, TextColumn

from usageboard.config import KEY_ENV_VARS, Settings, parse_days, parse_sort
from usageboard.connect import ClaudeConnector, CursorConnector, OpenAIConnector
from usageboard.console import console, error, info, warn
from usageboard.display import print_table, run_interactive, sort_users
from usageboard.see import UsageAggregator

app = typer.Typer(
    name="usageboard",
    help="AI coding usage leaderboard across Claude Code, OpenAI and Cursor",
    add_completion=False,
)


def create_aggregator(settings: Settings) -> UsageAggregator:
    """Create an aggregator with a connector for every configured key."""
    aggregator = UsageAggregator()

    if settings.anthropic_admin_api_key:
        aggregator.add_connector(ClaudeConnector(settings.anthropic_admin_api_key))
    else:
        warn(f"{KEY_ENV_VARS['claude']} not set, skipping Claude Code")

    if settings.openai_admin_api_key:
        aggregator.add_connector(OpenAIConnector(
            settings.openai_admin_api_key,
            cost_mode=settings.openai_cost_mode,
        ))
    else:
        warn(f"{KEY_ENV_VARS['openai']} not set, skipping OpenAI")

    if settings.cursor_admin_api_key:
        aggregator.add_connector(CursorConnector(settings.cursor_admin_api_key))
    else:
        warn(f"{KEY_ENV_VARS['cursor']} not set, skipping Cursor")

    return aggregator


def _is_tty() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


@app.command()
def report(
    days: Optional[str] = typer.Option(
        None,
        "--days", "-d",
        help="Number of days to look back (default 30)",
    ),
    sort: Optional[str] = typer.Option(
        None,
        "--sort", "-s",
        help="Sort by requests, tokens or cost (default requests)",
    ),
    interactive: Optional[bool] = typer.Option(
        None,
        "--interactive/--no-interactive", "-i/-I",
        help="Live view with sorting and filtering (default: on in a terminal)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json", "-j",
        help="Output as JSON",
    ),
):
    """Show per-user AI coding usage ranked across platforms."""
    window_days = parse_days(days)
    sort_key = parse_sort(sort)

    settings = Settings.from_env()
    if not settings.has_any_key:
        error(
            "\nNo API keys configured. Set at least one of:\n"
            + "".join(f"  {name}\n" for name in KEY_ENV_VARS.values())
            + "\nSee .env.example for details."
        )
        raise typer.Exit(code=1)

    aggregator = create_aggregator(settings)
    window_start = datetime.now(timezone.utc).date() - timedelta(days=window_days)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Fetching usage...", total=None)
            users = asyncio.run(aggregator.collect(window_start))
    except KeyboardInterrupt:
        error("\nInterrupted.")
        raise typer.Exit(code=130)
    except Exception as e:
        error(f"Fatal error: {e}")
        raise typer.Exit(code=1)

    if not users:
        info("\nNo usage data found for the specified period.")
        return

    ranked = sort_users(users, sort_key)

    if json_output:
        output = {
            "days": window_days,
            "sort": sort_key.value,
            "users": [u.to_dict() for u in ranked],
        }
        console.print_json(json.dumps(output))
        return

    if interactive is None:
        interactive = _is_tty()

    if not interactive:
        print_table(ranked, window_days, sort_key)
        return

    try:
        run_interactive(ranked, window_days, sort_key)
    except (termios.error, OSError) as e:
        # stdin is not a terminal
        error(f"Fatal error: cannot start interactive view: {e}")
        raise typer.Exit(code=1)
    except Exception as e:
        error(f"Fatal error: {e}")
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
