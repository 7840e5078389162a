"""
Runtime settings injected into handlers.

Built once by main.py from config.py and passed through the dispatcher's
workflow data, so handlers never import config directly. The privileged id
and leaderboard limit belong to ReferralLedgerService.
"""
from dataclasses import dataclass, field
from typing import FrozenSet


@dataclass(frozen=True)
class ReferralBotSettings:
    tracked_chat_ids: FrozenSet[int] = field(default_factory=frozenset)

    def is_tracked_chat(self, chat_id: int) -> bool:
        return chat_id in self.tracked_chat_ids
