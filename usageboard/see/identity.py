"""
Identity merge - one row per person across platforms.
"""

from typing import Iterable

from usageboard.connect.base import NormalizedRecord
from usageboard.see.models import MergedUser, PlatformUsage


def merge_by_email(records: Iterable[NormalizedRecord]) -> list[MergedUser]:
    """
    Group records by case-insensitive email.

    The first casing seen for an address is the one displayed. Records with
    no email are skipped. Users come back in order of first appearance.
    """
    users: dict[str, MergedUser] = {}

    for record in records:
        if not record.email:
            continue

        key = record.email.lower()
        user = users.get(key)
        if user is None:
            user = MergedUser(email=record.email)
            users[key] = user

        tokens = record.input_tokens + record.output_tokens
        user.requests += record.requests
        user.tokens += tokens
        user.cost_cents += record.cost_cents

        usage = user.by_platform.setdefault(record.platform, PlatformUsage())
        usage.requests += record.requests
        usage.tokens += tokens
        usage.cost_cents += record.cost_cents

    return list(users.values())
