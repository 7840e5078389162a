"""
Referral ledger model.

The ledger maps each selector (the participant who joined) to the referrer
they credited. One entry per selector; updates overwrite, nothing is deleted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple

from app.services.referrals.exceptions import LedgerFormatError


# Persisted keys. "referrals" is a mirror of "selections" kept for files
# written by earlier versions of the bot.
SELECTIONS_KEY = "selections"
REFERRALS_KEY = "referrals"


class LedgerLoadOutcome(Enum):
    """How a ledger load resolved"""
    LOADED = "loaded"  # Storage read and parsed
    ABSENT = "absent"  # No storage yet
    CORRUPT = "corrupt"  # Storage unreadable or malformed


@dataclass
class Ledger:
    """Selector -> referrer mapping"""
    selections: Dict[str, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.selections)

    def __contains__(self, selector_id: object) -> bool:
        return selector_id in self.selections

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(self.selections.items())

    def referrer_of(self, selector_id: str) -> Optional[str]:
        return self.selections.get(selector_id)

    def with_selection(self, selector_id: str, referrer_id: str) -> "Ledger":
        """Return a copy with selector_id mapped to referrer_id."""
        selections = dict(self.selections)
        selections[selector_id] = referrer_id
        return Ledger(selections=selections)

    def to_dict(self, include_legacy_mirror: bool = True) -> Dict[str, Dict[str, str]]:
        data = {SELECTIONS_KEY: dict(self.selections)}
        if include_legacy_mirror:
            data[REFERRALS_KEY] = dict(self.selections)
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Ledger":
        """
        Build a ledger from a decoded JSON record.

        "selections" is canonical. A record holding only "referrals" is read
        from that key instead.

        Raises:
            LedgerFormatError: If the record is not an object of string -> string maps
        """
        if not isinstance(data, dict):
            raise LedgerFormatError(f"Ledger record must be an object, got {type(data).__name__}")

        if SELECTIONS_KEY in data:
            raw = data[SELECTIONS_KEY]
        else:
            raw = data.get(REFERRALS_KEY, {})

        if not isinstance(raw, dict):
            raise LedgerFormatError(f"Ledger selections must be an object, got {type(raw).__name__}")

        selections = {}
        for selector_id, referrer_id in raw.items():
            if not isinstance(referrer_id, str) or not referrer_id:
                raise LedgerFormatError(f"Invalid referrer for selector {selector_id!r}: {referrer_id!r}")
            selections[selector_id] = referrer_id
        return cls(selections=selections)


@dataclass(frozen=True)
class LedgerLoadResult:
    """Ledger plus the outcome of the load that produced it"""
    ledger: Ledger
    outcome: LedgerLoadOutcome
    error: Optional[str] = None
