"""
Data models for merged usage.
"""

from dataclasses import dataclass, field
from enum import Enum

from usageboard.connect.base import Platform


class SortKey(str, Enum):
    """Metrics the leaderboard can be ranked by."""
    REQUESTS = "requests"
    TOKENS = "tokens"
    COST = "cost"

    @property
    def attribute(self) -> str:
        return "cost_cents" if self is SortKey.COST else self.value


@dataclass
class PlatformUsage:
    """Usage rolled up for one platform inside a merged user."""
    requests: int = 0
    tokens: int = 0
    cost_cents: int = 0


@dataclass
class MergedUser:
    """One person's usage across every platform."""
    email: str
    requests: int = 0
    tokens: int = 0
    cost_cents: int = 0
    by_platform: dict[Platform, PlatformUsage] = field(default_factory=dict)

    @property
    def platforms(self) -> set[Platform]:
        return set(self.by_platform)

    @property
    def platform_names(self) -> list[str]:
        """Display names in the order the platforms were first seen."""
        return [p.display_name for p in self.by_platform]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "email": self.email,
            "requests": self.requests,
            "tokens": self.tokens,
            "cost": round(self.cost_cents / 100, 2),
            "cost_cents": self.cost_cents,
            "platforms": [p.value for p in self.by_platform],
            "by_platform": {
                p.value: {
                    "requests": u.requests,
                    "tokens": u.tokens,
                    "cost_cents": u.cost_cents,
                }
                for p, u in self.by_platform.items()
            },
        }
