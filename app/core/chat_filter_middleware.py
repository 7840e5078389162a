"""
Middleware: drops messages that are not from a private chat or that come
from bots. Also filters empty and oversized texts.
"""
import re
import logging
from typing import Callable, Dict, Any, Awaitable
from aiogram import BaseMiddleware
from aiogram.types import Message

logger = logging.getLogger(__name__)

# Only whitespace, zero-width and other invisible unicode
_INVISIBLE_ONLY_RE = re.compile(
    r"^[\s\u200b-\u200f\u2028-\u202f\u2060-\u2069\u206a-\u206f\ufeff\u00a0\u00ad\u034f\u061c\u180e]*$"
)

# Telegram's own limit for a text message
MAX_MESSAGE_LENGTH = 4096


class PrivateChatOnlyMiddleware(BaseMiddleware):
    """Drops non-private, bot-originated and junk messages."""

    async def __call__(
        self,
        handler: Callable[[Any, Dict[str, Any]], Awaitable[Any]],
        event: Any,
        data: Dict[str, Any],
    ) -> Any:
        if not isinstance(event, Message):
            return await handler(event, data)

        if event.chat.type != "private":
            logger.debug(
                "Ignored non-private chat %s (type=%s)", event.chat.id, event.chat.type
            )
            return

        if event.from_user is None or event.from_user.is_bot:
            logger.debug("Ignored bot-originated message in chat %s", event.chat.id)
            return

        text = event.text
        if text is not None:
            if len(text) > MAX_MESSAGE_LENGTH:
                logger.warning(
                    "IGNORED_LONG_MESSAGE user=%s len=%d",
                    event.from_user.id,
                    len(text),
                )
                return

            if _INVISIBLE_ONLY_RE.match(text):
                logger.debug("IGNORED_INVISIBLE_MESSAGE user=%s", event.from_user.id)
                return

        return await handler(event, data)
