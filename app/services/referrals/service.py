"""
Referral Service - Selection, Override and Leaderboard

This module provides business logic for recording who referred whom and for
answering leaderboard queries. No aiogram imports, no Telegram formatting:
handlers get structured results and render them.

State per selector: unset -> set(referrer). Transitions:
- select_referrer: first selection or re-selection by the selector
- override_referrer: privileged overwrite of any selector's referrer

Every mutation runs load -> mutate -> save under one asyncio.Lock, so
concurrent events cannot lose each other's updates. The mutated ledger is a
copy; if the save fails it is discarded and the result reports failure.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from app.core.structured_logger import log_event
from app.services.referrals.exceptions import LedgerWriteError
from app.services.referrals.ledger import Ledger
from app.services.referrals.ranking import (
    LEADERBOARD_LIMIT,
    LeaderboardEntry,
    aggregate_referrals,
    rank_referrers,
)
from app.services.referrals.store import JsonLedgerStore

logger = logging.getLogger(__name__)


class SelectionKind(Enum):
    """What a successful selection did to the ledger"""
    CREATED = "created"  # Selector had no referrer
    UPDATED = "updated"  # Selector switched referrers
    UNCHANGED = "unchanged"  # Selector picked their current referrer again


# ====================================================================================
# Result Types
# ====================================================================================

@dataclass(frozen=True)
class SelectionResult:
    """Outcome of a selector choosing a referrer"""
    success: bool
    selector_id: str
    referrer_id: str
    reason: str
    kind: Optional[SelectionKind] = None
    previous_referrer_id: Optional[str] = None


@dataclass(frozen=True)
class OverrideResult:
    """Outcome of a privileged referrer override"""
    success: bool
    issuer_id: str
    target_id: str
    referrer_id: str
    reason: str
    previous_referrer_id: Optional[str] = None


class ReferralLedgerService:
    """Single owner of ledger mutations"""

    def __init__(
        self,
        store: JsonLedgerStore,
        privileged_user_id: Optional[str] = None,
        leaderboard_limit: int = LEADERBOARD_LIMIT,
    ):
        self.store = store
        self.privileged_user_id = privileged_user_id
        self.leaderboard_limit = leaderboard_limit
        self._lock = asyncio.Lock()

    def is_privileged(self, issuer_id: str) -> bool:
        return self.privileged_user_id is not None and issuer_id == self.privileged_user_id

    async def _commit(self, ledger: Ledger, operation: str) -> bool:
        try:
            await self.store.save(ledger)
        except LedgerWriteError as e:
            log_event(
                logger,
                component="referrals",
                operation=operation,
                outcome="failed",
                reason="storage_write_failed",
                level="warning",
                message=f"REFERRAL_MUTATION_DISCARDED [operation={operation}, error={e}]",
            )
            return False
        return True

    # ====================================================================================
    # Mutations
    # ====================================================================================

    async def select_referrer(self, selector_id: str, referrer_id: str) -> SelectionResult:
        """
        Record referrer_id as selector_id's referrer.

        Rules:
        - No entry yet -> CREATED
        - Different referrer already set -> overwritten, UPDATED with previous_referrer_id
        - Same referrer already set -> UNCHANGED, nothing written
        - Self-referral is rejected
        - Referrer existence is NOT checked here

        Returns:
            SelectionResult; success=False with reason "self_referral" or
            "storage_write_failed" leaves the ledger untouched.
        """
        if selector_id == referrer_id:
            log_event(
                logger,
                component="referrals",
                operation="select",
                outcome="rejected",
                reason="self_referral",
                level="warning",
                message=f"REFERRAL_SELF_ATTEMPT [selector={selector_id}]",
            )
            return SelectionResult(
                success=False,
                selector_id=selector_id,
                referrer_id=referrer_id,
                reason="self_referral",
            )

        async with self._lock:
            ledger = await self.store.load()
            previous = ledger.referrer_of(selector_id)

            if previous == referrer_id:
                logger.debug(f"REFERRAL_UNCHANGED [selector={selector_id}, referrer={referrer_id}]")
                return SelectionResult(
                    success=True,
                    selector_id=selector_id,
                    referrer_id=referrer_id,
                    reason="unchanged",
                    kind=SelectionKind.UNCHANGED,
                    previous_referrer_id=previous,
                )

            kind = SelectionKind.CREATED if previous is None else SelectionKind.UPDATED
            if not await self._commit(ledger.with_selection(selector_id, referrer_id), "select"):
                return SelectionResult(
                    success=False,
                    selector_id=selector_id,
                    referrer_id=referrer_id,
                    reason="storage_write_failed",
                    previous_referrer_id=previous,
                )

        if kind is SelectionKind.CREATED:
            message = f"REFERRAL_SELECTED [selector={selector_id}, referrer={referrer_id}]"
        else:
            message = f"REFERRAL_UPDATED [selector={selector_id}, previous={previous}, referrer={referrer_id}]"
        log_event(
            logger,
            component="referrals",
            operation="select",
            outcome="success",
            reason=kind.value,
            message=message,
        )
        return SelectionResult(
            success=True,
            selector_id=selector_id,
            referrer_id=referrer_id,
            reason=kind.value,
            kind=kind,
            previous_referrer_id=previous,
        )

    async def override_referrer(self, issuer_id: str, target_id: str, referrer_id: str) -> OverrideResult:
        """
        Privileged overwrite of target_id's referrer.

        Bypasses the selection rules entirely: applies whether or not the
        target already has a referrer, and needs nothing from the target.
        Only the configured privileged identifier may issue it.
        """
        if not self.is_privileged(issuer_id):
            log_event(
                logger,
                component="referrals",
                operation="override",
                outcome="denied",
                reason="not_privileged",
                level="warning",
                message=f"REFERRAL_OVERRIDE_DENIED [issuer={issuer_id}, target={target_id}, referrer={referrer_id}]",
            )
            return OverrideResult(
                success=False,
                issuer_id=issuer_id,
                target_id=target_id,
                referrer_id=referrer_id,
                reason="not_privileged",
            )

        async with self._lock:
            ledger = await self.store.load()
            previous = ledger.referrer_of(target_id)
            if not await self._commit(ledger.with_selection(target_id, referrer_id), "override"):
                return OverrideResult(
                    success=False,
                    issuer_id=issuer_id,
                    target_id=target_id,
                    referrer_id=referrer_id,
                    reason="storage_write_failed",
                    previous_referrer_id=previous,
                )

        log_event(
            logger,
            component="referrals",
            operation="override",
            outcome="success",
            reason="overridden",
            message=(
                f"REFERRAL_OVERRIDE [issuer={issuer_id}, target={target_id}, "
                f"previous={previous}, referrer={referrer_id}]"
            ),
        )
        return OverrideResult(
            success=True,
            issuer_id=issuer_id,
            target_id=target_id,
            referrer_id=referrer_id,
            reason="overridden",
            previous_referrer_id=previous,
        )

    # ====================================================================================
    # Queries
    # ====================================================================================

    async def get_referrer(self, selector_id: str) -> Optional[str]:
        ledger = await self.store.load()
        return ledger.referrer_of(selector_id)

    async def get_referral_counts(self) -> Dict[str, int]:
        ledger = await self.store.load()
        return aggregate_referrals(ledger)

    async def get_leaderboard(self, limit: Optional[int] = None) -> List[LeaderboardEntry]:
        """Current top referrers; empty list when nobody has been credited yet."""
        counts = await self.get_referral_counts()
        return rank_referrers(counts, self.leaderboard_limit if limit is None else limit)
