"""
Admin command: set <@X> to <@Y>

Overrides X's referrer with Y. The service decides whether the sender is
privileged; anyone else just gets the normal leaderboard reply.
"""
import logging
import re
from typing import Optional, Tuple

from aiogram import F, Router
from aiogram.types import Message

from app.handlers.common import texts
from app.handlers.user.leaderboard import send_leaderboard
from app.services.referrals import ReferralLedgerService

admin_router = Router()
logger = logging.getLogger(__name__)

OVERRIDE_COMMAND_RE = re.compile(
    r"^\s*set\s+(?:<@([0-9]+)>|@?([0-9]+))\s+to\s+(?:<@([0-9]+)>|@?([0-9]+))\s*$",
    re.IGNORECASE,
)


def parse_override_command(text: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Extract (target_id, referrer_id) from "set <@X> to <@Y>".

    Ids are numeric Telegram user ids. Mention brackets are optional:
    "set 123 to 456" also parses.
    Returns None for anything else.
    """
    if not isinstance(text, str):
        return None
    match = OVERRIDE_COMMAND_RE.match(text)
    if not match:
        return None
    target_id = match.group(1) or match.group(2)
    referrer_id = match.group(3) or match.group(4)
    return target_id, referrer_id


@admin_router.message(F.text.regexp(OVERRIDE_COMMAND_RE))
async def on_override_command(message: Message, referral_service: ReferralLedgerService):
    target_id, referrer_id = parse_override_command(message.text)
    issuer_id = str(message.from_user.id)

    result = await referral_service.override_referrer(issuer_id, target_id, referrer_id)
    if result.success:
        # Only the issuer is told; the target is not messaged
        await message.answer(texts.override_confirmation(result.target_id, result.referrer_id))
    elif result.reason == "storage_write_failed":
        await message.answer(texts.SAVE_FAILED)
    # Denied: the sender only gets the leaderboard

    await send_leaderboard(message, referral_service)
