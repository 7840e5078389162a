"""
Referral Service Domain Exceptions

All exceptions raised by the referral ledger layer.
"""


class ReferralServiceError(Exception):
    """Base exception for referral service errors"""
    pass


class LedgerFormatError(ReferralServiceError):
    """Raised when persisted ledger data is not a valid ledger record"""
    pass


class LedgerWriteError(ReferralServiceError):
    """Raised when the ledger cannot be durably written.

    Prior file contents are left in place. The mutation is NOT committed.
    """
    pass


class InvalidLeaderboardLimitError(ReferralServiceError):
    """Raised when a leaderboard is requested with a non-positive limit"""
    pass
