"""
Referral aggregation and leaderboard ranking.

Pure functions over a ledger snapshot: no I/O, no logging.
Counts are recomputed from the ledger on every query, so a selector who
switches referrers moves their contribution automatically.
"""

from dataclasses import dataclass
from typing import Dict, List

from app.services.referrals.exceptions import InvalidLeaderboardLimitError
from app.services.referrals.ledger import Ledger


LEADERBOARD_LIMIT = 10


@dataclass(frozen=True)
class LeaderboardEntry:
    """One leaderboard row. position is 1-based."""
    position: int
    referrer_id: str
    count: int


def aggregate_referrals(ledger: Ledger) -> Dict[str, int]:
    """
    Count selectors per referrer.

    Referrers nobody points at have no key (not zero).
    """
    counts: Dict[str, int] = {}
    for _, referrer_id in ledger.items():
        counts[referrer_id] = counts.get(referrer_id, 0) + 1
    return counts


def rank_referrers(counts: Dict[str, int], limit: int = LEADERBOARD_LIMIT) -> List[LeaderboardEntry]:
    """
    Order referrers by count descending, ties by referrer id ascending.

    Args:
        counts: referrer_id -> number of selectors
        limit: Maximum number of entries returned

    Returns:
        At most `limit` entries with consecutive positions starting at 1.
        Empty list when there are no counts.

    Raises:
        InvalidLeaderboardLimitError: If limit < 1
    """
    if limit < 1:
        raise InvalidLeaderboardLimitError(f"Leaderboard limit must be positive, got {limit}")

    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:limit]
    return [
        LeaderboardEntry(position=index, referrer_id=referrer_id, count=count)
        for index, (referrer_id, count) in enumerate(ordered, start=1)
    ]
