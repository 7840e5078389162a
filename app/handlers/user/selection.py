"""
Referrer selection: the user picked someone with the referrer picker.
"""
import logging

from aiogram import F, Router
from aiogram.types import Message

from app.handlers.common import texts
from app.handlers.common.keyboards import REFERRER_REQUEST_ID, get_remove_keyboard
from app.services.referrals import ReferralLedgerService, SelectionKind

user_router = Router()
logger = logging.getLogger(__name__)


@user_router.message(F.users_shared.request_id == REFERRER_REQUEST_ID)
async def on_referrer_selected(message: Message, referral_service: ReferralLedgerService):
    shared_users = message.users_shared.users
    if not shared_users:
        logger.warning(f"Empty users_shared from user={message.from_user.id}")
        return

    selector_id = str(message.from_user.id)
    referrer_id = str(shared_users[0].user_id)
    result = await referral_service.select_referrer(selector_id, referrer_id)

    if not result.success:
        if result.reason == "self_referral":
            await message.answer(texts.SELF_REFERRAL)
        else:
            await message.answer(texts.SAVE_FAILED)
        return

    if result.kind is SelectionKind.UPDATED:
        text = texts.selection_updated(result.previous_referrer_id, result.referrer_id)
    elif result.kind is SelectionKind.UNCHANGED:
        text = texts.selection_unchanged(result.referrer_id)
    else:
        text = texts.selection_created(result.referrer_id)
    await message.answer(text, reply_markup=get_remove_keyboard())
