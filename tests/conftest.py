"""
Pytest configuration and shared fixtures for referral bot tests.
"""
import pytest
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

from app.core.settings import ReferralBotSettings
from app.services.referrals import JsonLedgerStore, ReferralLedgerService


PRIVILEGED_ID = "1000"


@pytest.fixture
def ledger_path(tmp_path):
    """Ledger location inside a directory that does not exist yet"""
    return tmp_path / "referals" / "referals.json"


@pytest.fixture
def store(ledger_path):
    return JsonLedgerStore(ledger_path)


@pytest.fixture
def referral_service(store):
    return ReferralLedgerService(store, privileged_user_id=PRIVILEGED_ID)


@pytest.fixture
def settings():
    return ReferralBotSettings(tracked_chat_ids=frozenset({-1001, -1002}))


@pytest.fixture
def make_message():
    """Factory for a private-chat Message mock with an awaitable answer()"""
    def _make(user_id: int = 42, text: Optional[str] = None, is_bot: bool = False, chat_type: str = "private"):
        message = MagicMock()
        message.message_id = 7
        message.text = text
        message.from_user.id = user_id
        message.from_user.is_bot = is_bot
        message.chat.id = user_id
        message.chat.type = chat_type
        message.answer = AsyncMock()
        return message
    return _make
