"""
User command: /start
"""
import logging

from aiogram import Router
from aiogram.filters import CommandStart
from aiogram.types import Message

from app.handlers.common import texts
from app.handlers.common.keyboards import get_referrer_picker_keyboard

user_router = Router()
logger = logging.getLogger(__name__)


@user_router.message(CommandStart())
async def cmd_start(message: Message):
    """Show the referrer picker. Telegram only lets the bot DM users who started it."""
    await message.answer(texts.START_PROMPT, reply_markup=get_referrer_picker_keyboard())
