"""
Keyboard builders shared across handler domains.
"""
from aiogram.types import (
    KeyboardButton,
    KeyboardButtonRequestUsers,
    ReplyKeyboardMarkup,
    ReplyKeyboardRemove,
)

# request_id echoed back in Message.users_shared for the referrer picker
REFERRER_REQUEST_ID = 1


def get_referrer_picker_keyboard() -> ReplyKeyboardMarkup:
    """One-button keyboard that opens Telegram's user picker (one non-bot user)."""
    return ReplyKeyboardMarkup(
        keyboard=[[
            KeyboardButton(
                text="Select user",
                request_users=KeyboardButtonRequestUsers(
                    request_id=REFERRER_REQUEST_ID,
                    user_is_bot=False,
                    max_quantity=1,
                ),
            )
        ]],
        resize_keyboard=True,
        one_time_keyboard=True,
    )


def get_remove_keyboard() -> ReplyKeyboardRemove:
    return ReplyKeyboardRemove()
