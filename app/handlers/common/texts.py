"""
Message texts. All texts are HTML (bot default parse mode).
"""
from typing import List, Optional

from aiogram.utils.markdown import hbold, hlink

from app.services.referrals import LeaderboardEntry

MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}

LEADERBOARD_EMPTY = "No referrals yet! Be the first to refer someone!"
START_PROMPT = "Who invited you here? Pick them with the button below."
SELF_REFERRAL = "You can't select yourself as your referrer. Please pick the person who invited you."
SAVE_FAILED = "⚠️ Could not save that change. Please try again later."


def mention(user_id: str) -> str:
    """Clickable mention for a Telegram user id."""
    return hlink(user_id, f"tg://user?id={user_id}")


def join_prompt(chat_title: Optional[str]) -> str:
    chat_name = hbold(chat_title) if chat_title else "the chat"
    return f"Thanks for joining {chat_name}! Who invited you here?"


def leaderboard(entries: List[LeaderboardEntry], limit: int) -> str:
    text = hbold(f"🏆 Top {limit} Referrers 🏆") + "\n\n"
    if not entries:
        return text + LEADERBOARD_EMPTY

    lines = []
    for entry in entries:
        marker = MEDALS.get(entry.position, f"{entry.position}.")
        suffix = "s" if entry.count > 1 else ""
        lines.append(f"{marker} {mention(entry.referrer_id)} - {entry.count} referral{suffix}")
    return text + "\n".join(lines)


def selection_created(referrer_id: str) -> str:
    return (
        f"Thanks for selecting {mention(referrer_id)} as your referrer.\n\n"
        "Invite your friends too: every person who names you as their referrer "
        "moves you up the leaderboard. Message me any time to see the standings."
    )


def selection_updated(previous_referrer_id: str, referrer_id: str) -> str:
    return (
        f"You successfully updated your referrer from {mention(previous_referrer_id)} "
        f"to {mention(referrer_id)}!"
    )


def selection_unchanged(referrer_id: str) -> str:
    return f"{mention(referrer_id)} is already your referrer."


def override_confirmation(target_id: str, referrer_id: str) -> str:
    return f"Set {mention(target_id)}'s referrer to {mention(referrer_id)}."
