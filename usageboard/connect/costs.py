"""
Cost computation policies for providers that report cost differently.
"""

import math
from enum import Enum
from typing import Union


class CostMode(str, Enum):
    """How a connector arrives at per-user cost."""
    DIRECT = "direct"  # reported per identity
    PROPORTIONAL = "proportional"  # org total split by token share
    UNAVAILABLE = "unavailable"  # no cost signal, always zero


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def to_cents(amount_usd: Union[int, float]) -> int:
    """Convert a dollar amount to whole cents."""
    return round_half_up(amount_usd * 100)


def allocate_proportional(
    total_cost_cents: int,
    tokens_by_user: dict[str, int],
) -> dict[str, int]:
    """
    Split an organization-wide cost across users by token share.

    Each share is rounded on its own, so the shares may not add up to the
    total exactly. No reconciliation is done.
    """
    org_tokens = sum(tokens_by_user.values())
    if org_tokens == 0:
        return {user: 0 for user in tokens_by_user}

    return {
        user: round_half_up(total_cost_cents * tokens / org_tokens)
        for user, tokens in tokens_by_user.items()
    }


def unavailable_costs(users) -> dict[str, int]:
    return {user: 0 for user in users}
