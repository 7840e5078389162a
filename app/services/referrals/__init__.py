"""
Referral Service Layer

Referral ledger, leaderboard ranking and privileged corrections.
"""

from app.services.referrals.service import (
    ReferralLedgerService,
    SelectionKind,
    SelectionResult,
    OverrideResult,
)
from app.services.referrals.ranking import (
    LEADERBOARD_LIMIT,
    LeaderboardEntry,
    aggregate_referrals,
    rank_referrers,
)
from app.services.referrals.ledger import (
    Ledger,
    LedgerLoadOutcome,
    LedgerLoadResult,
)
from app.services.referrals.store import JsonLedgerStore
from app.services.referrals.exceptions import (
    ReferralServiceError,
    LedgerFormatError,
    LedgerWriteError,
    InvalidLeaderboardLimitError,
)

__all__ = [
    "ReferralLedgerService",
    "SelectionKind",
    "SelectionResult",
    "OverrideResult",
    "LEADERBOARD_LIMIT",
    "LeaderboardEntry",
    "aggregate_referrals",
    "rank_referrers",
    "Ledger",
    "LedgerLoadOutcome",
    "LedgerLoadResult",
    "JsonLedgerStore",
    "ReferralServiceError",
    "LedgerFormatError",
    "LedgerWriteError",
    "InvalidLeaderboardLimitError",
]
