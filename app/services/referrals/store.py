"""
JSON file ledger store.

The whole ledger is read and written on every operation. Loads never fail:
missing or unreadable storage yields an empty ledger with an ABSENT or CORRUPT
outcome. Saves replace the file atomically (temp file + rename) and raise
LedgerWriteError on failure.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Union

from app.services.referrals.exceptions import LedgerFormatError, LedgerWriteError
from app.services.referrals.ledger import (
    Ledger,
    LedgerLoadOutcome,
    LedgerLoadResult,
    REFERRALS_KEY,
    SELECTIONS_KEY,
)

logger = logging.getLogger(__name__)

DEFAULT_LEDGER_PATH = Path("referals") / "referals.json"


class JsonLedgerStore:
    """Ledger persisted as a single JSON document"""

    def __init__(self, path: Union[str, Path] = DEFAULT_LEDGER_PATH, legacy_mirror: bool = True):
        self.path = Path(path)
        self.legacy_mirror = legacy_mirror

    async def load(self) -> Ledger:
        """Load the ledger, substituting an empty one for absent/corrupt storage."""
        result = await self.load_result()
        return result.ledger

    async def load_result(self) -> LedgerLoadResult:
        # File I/O runs off the event loop
        return await asyncio.to_thread(self._read)

    async def save(self, ledger: Ledger) -> None:
        """
        Persist the full ledger, replacing prior contents.

        Raises:
            LedgerWriteError: If the file could not be written
        """
        await asyncio.to_thread(self._write, ledger)

    def _read(self) -> LedgerLoadResult:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(f"LEDGER_ABSENT [path={self.path}]")
            return LedgerLoadResult(ledger=Ledger(), outcome=LedgerLoadOutcome.ABSENT)
        except (OSError, UnicodeDecodeError) as e:
            return self._corrupt(e)

        try:
            data = json.loads(raw)
            ledger = Ledger.from_dict(data)
        except (ValueError, RecursionError, LedgerFormatError) as e:
            # json.JSONDecodeError is a ValueError; deep nesting raises RecursionError
            return self._corrupt(e)

        if isinstance(data.get(REFERRALS_KEY), dict) and SELECTIONS_KEY in data:
            if data[REFERRALS_KEY] != data[SELECTIONS_KEY]:
                logger.warning(
                    f"LEDGER_MIRROR_DIVERGED [path={self.path}] "
                    f"using {SELECTIONS_KEY!r} as source of truth"
                )

        logger.debug(f"LEDGER_LOADED [path={self.path}, entries={len(ledger)}]")
        return LedgerLoadResult(ledger=ledger, outcome=LedgerLoadOutcome.LOADED)

    def _corrupt(self, error: Exception) -> LedgerLoadResult:
        reason = f"{type(error).__name__}: {str(error)[:200]}"
        logger.warning(f"LEDGER_CORRUPT [path={self.path}, reason={reason}] using empty ledger")
        return LedgerLoadResult(ledger=Ledger(), outcome=LedgerLoadOutcome.CORRUPT, error=reason)

    def _write(self, ledger: Ledger) -> None:
        temp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps(ledger.to_dict(include_legacy_mirror=self.legacy_mirror), indent=2)
            with open(temp_path, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            try:
                if temp_path.exists():
                    temp_path.unlink()
            except OSError:
                logger.debug(f"Could not remove temp ledger file: {temp_path}")
            logger.exception(f"LEDGER_WRITE_FAILED [path={self.path}]")
            raise LedgerWriteError(f"Failed to write ledger to {self.path}: {e}") from e

        logger.debug(f"LEDGER_SAVED [path={self.path}, entries={len(ledger)}]")
