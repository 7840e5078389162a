"""
Leaderboard: any private message the bot doesn't otherwise handle.
"""
import logging

from aiogram import Router
from aiogram.types import Message

from app.handlers.common import texts
from app.services.referrals import ReferralLedgerService

user_router = Router()
logger = logging.getLogger(__name__)


async def send_leaderboard(message: Message, referral_service: ReferralLedgerService) -> None:
    entries = await referral_service.get_leaderboard()
    await message.answer(texts.leaderboard(entries, referral_service.leaderboard_limit))
    logger.debug(f"Leaderboard sent: user={message.from_user.id}, entries={len(entries)}")


@user_router.message()
async def on_private_message(message: Message, referral_service: ReferralLedgerService):
    """Catch-all for private messages: reply with current standings."""
    await send_leaderboard(message, referral_service)
