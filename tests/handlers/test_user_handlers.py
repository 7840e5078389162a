"""
Unit tests for user-facing handlers: join prompt, /start, selection, leaderboard.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from aiogram.types import ReplyKeyboardMarkup, ReplyKeyboardRemove

from app.handlers.common.keyboards import REFERRER_REQUEST_ID
from app.handlers.user.join import on_member_joined
from app.handlers.user.leaderboard import on_private_message
from app.handlers.user.selection import on_referrer_selected
from app.handlers.user.start import cmd_start
from app.services.referrals import Ledger, SelectionResult


def _shared_message(make_message, selector_id: int, referrer_ids):
    message = make_message(user_id=selector_id)
    message.users_shared.request_id = REFERRER_REQUEST_ID
    message.users_shared.users = [MagicMock(user_id=referrer_id) for referrer_id in referrer_ids]
    return message


def _join_event(chat_id: int, user_id: int = 42, is_bot: bool = False, title: str = "Raiding Party"):
    event = MagicMock()
    event.chat.id = chat_id
    event.chat.title = title
    event.new_chat_member.user.id = user_id
    event.new_chat_member.user.is_bot = is_bot
    return event


class TestOnMemberJoined:
    """Tests for on_member_joined handler"""

    @pytest.mark.asyncio
    async def test_tracked_chat_prompts_user(self, settings):
        bot = MagicMock()
        bot.send_message = AsyncMock()

        await on_member_joined(_join_event(-1001), bot, settings)

        bot.send_message.assert_awaited_once()
        args, kwargs = bot.send_message.await_args
        assert args[0] == 42
        assert "Who invited you here?" in args[1]
        assert "Raiding Party" in args[1]
        assert isinstance(kwargs["reply_markup"], ReplyKeyboardMarkup)

    @pytest.mark.asyncio
    async def test_untracked_chat_ignored(self, settings):
        bot = MagicMock()
        bot.send_message = AsyncMock()

        await on_member_joined(_join_event(-9999), bot, settings)

        bot.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bot_member_ignored(self, settings):
        bot = MagicMock()
        bot.send_message = AsyncMock()

        await on_member_joined(_join_event(-1002, is_bot=True), bot, settings)

        bot.send_message.assert_not_awaited()


class TestCmdStart:

    @pytest.mark.asyncio
    async def test_shows_picker(self, make_message):
        message = make_message(text="/start")

        await cmd_start(message)

        assert isinstance(message.answer.await_args.kwargs["reply_markup"], ReplyKeyboardMarkup)


class TestOnReferrerSelected:
    """Tests for on_referrer_selected handler"""

    @pytest.mark.asyncio
    async def test_first_selection(self, referral_service, make_message):
        message = _shared_message(make_message, 1, [2])

        await on_referrer_selected(message, referral_service)

        assert await referral_service.get_referrer("1") == "2"
        args, kwargs = message.answer.await_args
        assert "Thanks for selecting" in args[0]
        assert isinstance(kwargs["reply_markup"], ReplyKeyboardRemove)

    @pytest.mark.asyncio
    async def test_reselection_mentions_previous(self, referral_service, make_message):
        await referral_service.select_referrer("1", "2")
        message = _shared_message(make_message, 1, [3])

        await on_referrer_selected(message, referral_service)

        text = message.answer.await_args.args[0]
        assert "updated your referrer" in text
        assert "tg://user?id=2" in text
        assert "tg://user?id=3" in text

    @pytest.mark.asyncio
    async def test_unchanged(self, referral_service, make_message):
        await referral_service.select_referrer("1", "2")
        message = _shared_message(make_message, 1, [2])

        await on_referrer_selected(message, referral_service)

        assert "already your referrer" in message.answer.await_args.args[0]

    @pytest.mark.asyncio
    async def test_self_referral(self, referral_service, make_message):
        message = _shared_message(make_message, 1, [1])

        await on_referrer_selected(message, referral_service)

        assert "can't select yourself" in message.answer.await_args.args[0]
        assert await referral_service.get_referrer("1") is None

    @pytest.mark.asyncio
    async def test_write_failure_never_confirms(self, referral_service, make_message):
        message = _shared_message(make_message, 1, [2])
        failed = SelectionResult(
            success=False, selector_id="1", referrer_id="2", reason="storage_write_failed"
        )

        with patch.object(referral_service, "select_referrer", AsyncMock(return_value=failed)):
            await on_referrer_selected(message, referral_service)

        text = message.answer.await_args.args[0]
        assert "Could not save" in text
        assert "Thanks for selecting" not in text

    @pytest.mark.asyncio
    async def test_empty_share_ignored(self, referral_service, make_message):
        message = _shared_message(make_message, 1, [])

        await on_referrer_selected(message, referral_service)

        message.answer.assert_not_awaited()


class TestOnPrivateMessage:
    """Tests for the leaderboard catch-all"""

    @pytest.mark.asyncio
    async def test_empty_leaderboard(self, referral_service, make_message):
        message = make_message(text="hi")

        await on_private_message(message, referral_service)

        assert "No referrals yet" in message.answer.await_args.args[0]

    @pytest.mark.asyncio
    async def test_leaderboard_content(self, referral_service, store, make_message):
        await store.save(Ledger(selections={"1": "R1", "2": "R1", "3": "R2"}))
        message = make_message(text="anything")

        await on_private_message(message, referral_service)

        text = message.answer.await_args.args[0]
        assert "🥇" in text and "2 referrals" in text
        assert "🥈" in text and "1 referral" in text
