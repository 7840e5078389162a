"""
Join prompt: a user joined one of the tracked chats.
"""
import logging

from aiogram import Bot, Router
from aiogram.filters import JOIN_TRANSITION, ChatMemberUpdatedFilter
from aiogram.types import ChatMemberUpdated

from app.core.settings import ReferralBotSettings
from app.handlers.common import texts
from app.handlers.common.keyboards import get_referrer_picker_keyboard

user_router = Router()
logger = logging.getLogger(__name__)


@user_router.chat_member(ChatMemberUpdatedFilter(member_status_changed=JOIN_TRANSITION))
async def on_member_joined(event: ChatMemberUpdated, bot: Bot, settings: ReferralBotSettings):
    """Ask the new member who invited them, in a private message."""
    user = event.new_chat_member.user
    if not settings.is_tracked_chat(event.chat.id):
        logger.debug(f"Ignoring join event for untracked chat {event.chat.id}")
        return
    if user.is_bot:
        return

    await bot.send_message(
        user.id,
        texts.join_prompt(event.chat.title),
        reply_markup=get_referrer_picker_keyboard(),
    )
    logger.info(f"Referrer prompt sent: user={user.id}, chat={event.chat.id}")
