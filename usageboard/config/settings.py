"""
Runtime settings: API keys from the environment and report options.
"""

import os
from typing import Optional, Union

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field

from usageboard.connect.costs import CostMode
from usageboard.console import warn
from usageboard.see.models import SortKey

DEFAULT_DAYS = 30
DEFAULT_SORT = SortKey.REQUESTS

# Environment variable for each platform's admin key
KEY_ENV_VARS = {
    "claude": "ANTHROPIC_ADMIN_API_KEY",
    "openai": "OPENAI_ORG_API_KEY",
    "cursor": "CURSOR_ADMIN_API_KEY",
}


class Settings(BaseModel):
    """Credentials and provider options."""
    anthropic_admin_api_key: Optional[str] = None
    openai_admin_api_key: Optional[str] = None
    cursor_admin_api_key: Optional[str] = None
    openai_cost_mode: CostMode = Field(default=CostMode.PROPORTIONAL)

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Read settings from the environment, loading a .env file first."""
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True))

        cost_mode = os.getenv("USAGEBOARD_OPENAI_COST_MODE", CostMode.PROPORTIONAL.value)
        if cost_mode not in (CostMode.PROPORTIONAL.value, CostMode.UNAVAILABLE.value):
            warn(
                f'Invalid USAGEBOARD_OPENAI_COST_MODE "{cost_mode}", '
                f'using default "{CostMode.PROPORTIONAL.value}"'
            )
            cost_mode = CostMode.PROPORTIONAL.value

        return cls(
            anthropic_admin_api_key=os.getenv(KEY_ENV_VARS["claude"]) or None,
            openai_admin_api_key=(
                os.getenv(KEY_ENV_VARS["openai"]) or os.getenv("OPENAI_ADMIN_KEY") or None
            ),
            cursor_admin_api_key=os.getenv(KEY_ENV_VARS["cursor"]) or None,
            openai_cost_mode=CostMode(cost_mode),
        )

    @property
    def has_any_key(self) -> bool:
        return any([
            self.anthropic_admin_api_key,
            self.openai_admin_api_key,
            self.cursor_admin_api_key,
        ])


def parse_days(raw: Union[str, int, None]) -> int:
    """Lookback window in days. Bad values fall back to the default with a warning."""
    if raw is None:
        return DEFAULT_DAYS

    try:
        days = int(raw)
    except (TypeError, ValueError):
        days = 0

    if days < 1:
        warn(f'Invalid --days value "{raw}", using default {DEFAULT_DAYS}')
        return DEFAULT_DAYS
    return days


def parse_sort(raw: Union[str, SortKey, None]) -> SortKey:
    if raw is None:
        return DEFAULT_SORT

    try:
        return SortKey(raw)
    except ValueError:
        warn(f'Invalid --sort value "{raw}", using default "{DEFAULT_SORT.value}"')
        return DEFAULT_SORT
