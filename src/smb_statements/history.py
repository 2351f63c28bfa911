# SMB Statements - Interlinked financial statements simulator for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
History and undo for SMB Statements.

The history is an append-only log of immutable snapshots, one per applied
transaction. Undo restores a previous state from a snapshot; it never
reverses a transaction arithmetically.

States
------
- Empty:        no transaction recorded.
- NonEmpty(n):  n transactions recorded.

Transitions
-----------
- record(entry):  Empty | NonEmpty(n)  -> NonEmpty(n + 1)
- undo():         NonEmpty(n > 1)      -> NonEmpty(n - 1), the new tail holds
                                          the statements to restore
                  NonEmpty(1)          -> Empty, the caller restores the seed
                  Empty                -> Empty (no-op)
- clear():        any                  -> Empty
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .statements import FullStatements
from .transactions import Transaction


@dataclass(frozen=True)
class HistoryEntry:
    """Snapshot of the statements taken right after ``transaction``."""

    timestamp: datetime
    statements: FullStatements
    transaction: Transaction


class History:
    """Append-only snapshot log with single-step rollback.

    Each record keeps two deep copies of the statements: a private one used
    to restore state on undo, and a published one handed out by ``entries``.
    Writes into a published entry never reach the restore path.
    """

    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []
        self._published: list[HistoryEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def is_empty(self) -> bool:
        return not self._entries

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._published)

    @property
    def tail(self) -> Optional[HistoryEntry]:
        """Private copy of the most recent entry (the undo restore point)."""
        return self._entries[-1] if self._entries else None

    def record(
        self,
        statements: FullStatements,
        transaction: Transaction,
        timestamp: datetime,
    ) -> HistoryEntry:
        """Append a snapshot of ``statements`` and return its published entry.

        The log keeps its own deep copies, so later changes to the caller's
        objects cannot alter it.
        """
        self._entries.append(
            HistoryEntry(
                timestamp=timestamp,
                statements=statements.copy(),
                transaction=transaction,
            )
        )
        published = HistoryEntry(
            timestamp=timestamp,
            statements=statements.copy(),
            transaction=transaction,
        )
        self._published.append(published)
        return published

    def undo(self) -> Optional[HistoryEntry]:
        """Remove and return the most recent published entry (None when empty).

        After the call, ``tail`` is the entry whose statements must be
        restored, or None if the log became empty.
        """
        if not self._entries:
            return None
        self._entries.pop()
        return self._published.pop()

    def clear(self) -> None:
        self._entries.clear()
        self._published.clear()
