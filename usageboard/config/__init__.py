"""
Configuration module for usageboard.
"""

from usageboard.config.settings import (
    DEFAULT_DAYS,
    DEFAULT_SORT,
    KEY_ENV_VARS,
    Settings,
    parse_days,
    parse_sort,
)

__all__ = [
    "DEFAULT_DAYS",
    "DEFAULT_SORT",
    "KEY_ENV_VARS",
    "Settings",
    "parse_days",
    "parse_sort",
]
