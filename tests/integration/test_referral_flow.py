"""
Integration tests for the referral ledger against a real file.

Scenarios:
A. First selection shows up on the leaderboard
B. Re-selection moves the credit to the new referrer
C. Ten selectors, one referrer
D. Privileged override vs. the same command from anyone else
E. Failed write during re-selection keeps the previous state
"""
import pytest
from unittest.mock import patch

from app.services.referrals import (
    JsonLedgerStore,
    LeaderboardEntry,
    ReferralLedgerService,
    SelectionKind,
    aggregate_referrals,
    rank_referrers,
)
from tests.conftest import PRIVILEGED_ID


class TestReferralFlow:

    @pytest.mark.asyncio
    async def test_first_selection_ranked(self, referral_service, store):
        """A: empty -> U1 selects U2 -> {U2: 1} -> [(U2, 1, rank 1)]"""
        await referral_service.select_referrer("U1", "U2")

        counts = aggregate_referrals(await store.load())

        assert counts == {"U2": 1}
        assert rank_referrers(counts, 10) == [LeaderboardEntry(position=1, referrer_id="U2", count=1)]

    @pytest.mark.asyncio
    async def test_reselection_moves_credit(self, referral_service, store):
        """B: U1 -> U2, then U1 re-selects U3 -> only U1 -> U3, U2 has no key"""
        await referral_service.select_referrer("U1", "U2")

        result = await referral_service.select_referrer("U1", "U3")

        assert result.kind is SelectionKind.UPDATED
        assert result.previous_referrer_id == "U2"
        ledger = await store.load()
        assert ledger.selections == {"U1": "U3"}
        counts = aggregate_referrals(ledger)
        assert counts == {"U3": 1}
        assert "U2" not in counts

    @pytest.mark.asyncio
    async def test_ten_selectors_one_referrer(self, referral_service):
        """C: ten selectors pick R -> exactly one entry (R, 10, rank 1)"""
        for i in range(10):
            await referral_service.select_referrer(f"S{i}", "R")

        assert await referral_service.get_leaderboard(10) == [
            LeaderboardEntry(position=1, referrer_id="R", count=10)
        ]

    @pytest.mark.asyncio
    async def test_override_privileged_only(self, referral_service, store):
        """D: privileged override sets U5 -> U6; the same request from U7 does nothing"""
        denied = await referral_service.override_referrer("U7", "U5", "U8")
        assert denied.success is False
        assert len(await store.load()) == 0

        result = await referral_service.override_referrer(PRIVILEGED_ID, "U5", "U6")

        assert result.success is True
        assert (await store.load()).selections == {"U5": "U6"}

        denied = await referral_service.override_referrer("U7", "U5", "U8")
        assert denied.success is False
        assert (await store.load()).selections == {"U5": "U6"}

    @pytest.mark.asyncio
    async def test_failed_write_keeps_previous_state(self, referral_service, ledger_path):
        """E: write fails during re-selection -> reload shows pre-mutation state"""
        await referral_service.select_referrer("U1", "U2")

        with patch("app.services.referrals.store.os.replace", side_effect=OSError("disk full")):
            result = await referral_service.select_referrer("U1", "U3")

        assert result.success is False
        assert result.reason == "storage_write_failed"

        fresh_store = JsonLedgerStore(ledger_path)
        assert (await fresh_store.load()).selections == {"U1": "U2"}

    @pytest.mark.asyncio
    async def test_state_survives_restart(self, ledger_path):
        """A new service over the same file sees earlier selections"""
        first = ReferralLedgerService(JsonLedgerStore(ledger_path), privileged_user_id=PRIVILEGED_ID)
        await first.select_referrer("U1", "U2")
        await first.select_referrer("U3", "U2")

        second = ReferralLedgerService(JsonLedgerStore(ledger_path), privileged_user_id=PRIVILEGED_ID)

        assert await second.get_referral_counts() == {"U2": 2}
        result = await second.select_referrer("U1", "U4")
        assert result.kind is SelectionKind.UPDATED
