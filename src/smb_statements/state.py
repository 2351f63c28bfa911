# SMB Statements - Interlinked financial statements simulator for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Aggregate root for SMB Statements.

``FinancialState`` owns the published statements, the transaction log and
the history of one session. It is the only place where state changes, and
every change follows the same pipeline:

    transaction -> processor.apply_transaction()  (new raw statements)
                -> engine.recompute()             (derived totals)
                -> History.record() + transaction log
                -> ratios.compute_ratios()        (ratio report)
                -> publish an immutable StateSnapshot, notify observers

Concurrency
-----------
Mutations (``initialize``, ``record_transaction``, ``undo``, ``reset``) run
one at a time behind a re-entrant lock. The published ``StateSnapshot`` is
replaced atomically, so ``snapshot()`` and ``ratios()`` never observe a
statement mid-mutation and do not need the lock. Readers get detached copies:
writing into a published snapshot or history entry never reaches the
statements used by the next transaction or by undo.

Observers are called after the lock is released. Published snapshots go
through a FIFO queue drained by one thread at a time, so every observer sees
them in publication order, even when an observer records a transaction
itself or several threads write concurrently.

Errors
------
A rejected transaction (unknown kind, malformed payload) leaves the published
state untouched and adds nothing to the logs. The failure is returned as a
``ProcessResult`` with ``ok=False``; nothing is raised. ``undo`` and
``reset`` never fail.
"""

import logging
import threading
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Union

from .config import AppConfig
from .engine import recompute
from .errors import TransactionError
from .history import History, HistoryEntry
from .processor import DEFAULT_PRINCIPAL_SHARE, ProcessResult, apply_transaction
from .ratios import RatioReport, compute_ratios, load_ratio_rules
from .statements import (
    BalanceSheet,
    CashFlowStatement,
    FullStatements,
    IncomeStatement,
    RawStatements,
    seed_statements,
)
from .transactions import Transaction

logger = logging.getLogger(__name__)

TransactionInput = Union[Transaction, Mapping[str, Any]]


@dataclass(frozen=True)
class StateSnapshot:
    """
    Published, read-only view of the aggregate.

    Attributes:
        statements: Fully recomputed statements.
        transactions: Recorded transactions, oldest first.
        history: One HistoryEntry per recorded transaction.
        ratios: Ratio report computed from ``statements``.
    """

    statements: FullStatements
    transactions: tuple[Transaction, ...]
    history: tuple[HistoryEntry, ...]
    ratios: RatioReport

    @property
    def balance_sheet(self) -> BalanceSheet:
        return self.statements.balance_sheet

    @property
    def income_statement(self) -> IncomeStatement:
        return self.statements.income_statement

    @property
    def cash_flow_statement(self) -> CashFlowStatement:
        return self.statements.cash_flow_statement


Observer = Callable[[StateSnapshot], None]


def _utcnow() -> datetime:
    """Return the current UTC time (isolated for easier testing)."""
    return datetime.now(timezone.utc)


class FinancialState:
    """
    Session-owned aggregate of statements, transactions and history.

    Args:
        config: Optional application configuration (loan split, ratio rules,
            seed statements). Defaults apply when omitted.
        seed: Optional raw statements used by ``initialize``/``reset``/undo
            of the first transaction. Overrides the configured seed.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        seed: Optional[RawStatements] = None,
    ) -> None:
        self._lock = threading.RLock()
        self._observers: list[Observer] = []
        self._pending: deque[tuple[StateSnapshot, tuple[Observer, ...]]] = deque()
        self._draining = False

        if seed is None and config is not None:
            seed = config.seed_statements
        self._seed: RawStatements = (seed or seed_statements()).copy()

        self._principal_share = (
            config.principal_share if config is not None else DEFAULT_PRINCIPAL_SHARE
        )
        rules_file = config.ratios_rules_file if config is not None else None
        self._ratio_rules = load_ratio_rules(rules_file)

        self._transactions: list[Transaction] = []
        self._history = History()
        self._current: FullStatements = recompute(self._seed)
        self._snapshot = self._build_snapshot(self._current)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def snapshot(self) -> StateSnapshot:
        """Return the currently published snapshot."""
        return self._snapshot

    @property
    def statements(self) -> FullStatements:
        return self._snapshot.statements

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self._snapshot.transactions

    @property
    def history(self) -> tuple[HistoryEntry, ...]:
        return self._snapshot.history

    def ratios(self) -> RatioReport:
        """Return the ratio report of the published snapshot."""
        return self._snapshot.ratios

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """
        Register ``observer`` and call it once with the current snapshot.

        The first call goes through the notification queue, so the observer
        never sees that snapshot after a newer one.

        Returns:
            A callable that unregisters the observer.
        """
        with self._lock:
            self._observers.append(observer)
            self._pending.append((self._snapshot, (observer,)))
        self._drain()

        def _unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Write side
    # ------------------------------------------------------------------

    def initialize(self) -> StateSnapshot:
        """Publish the recomputed seed statements, clearing both logs."""
        with self._lock:
            self._transactions.clear()
            self._history.clear()
            snapshot = self._publish(recompute(self._seed))
        self._drain()
        return snapshot

    def reset(self) -> StateSnapshot:
        """Restore the seed statements and clear both logs."""
        logger.info("Resetting financial state to its initial values")
        return self.initialize()

    def preview(self, transaction: TransactionInput) -> ProcessResult:
        """
        Apply ``transaction`` to the published statements without recording.

        Useful for impact previews: the result carries the would-be raw
        statements (see ``views.compare_statements``).
        """
        tx = self._coerce(transaction)
        if isinstance(tx, TransactionError):
            return ProcessResult.failure(tx)
        return apply_transaction(self._current.raw, tx, self._principal_share)

    def record_transaction(self, transaction: TransactionInput) -> ProcessResult:
        """
        Validate, apply and record ``transaction``, then publish the result.

        Args:
            transaction: A Transaction, or a mapping accepted by
                ``Transaction.from_mapping``.

        Returns:
            The ProcessResult. On failure the published state, the
            transaction log and the history are unchanged.
        """
        tx = self._coerce(transaction)
        if isinstance(tx, TransactionError):
            logger.warning("Rejected transaction: %s", tx)
            return ProcessResult.failure(tx)

        with self._lock:
            result = apply_transaction(self._current.raw, tx, self._principal_share)
            if not result.ok or result.statements is None:
                logger.warning("Rejected transaction: %s", result.error)
                return result

            full = recompute(result.statements)
            now = _utcnow()
            recorded = tx.recorded(len(self._transactions) + 1, now)
            self._transactions.append(recorded)
            self._history.record(full, recorded, now)
            self._publish(full)

        logger.debug("Recorded transaction #%s (%s)", recorded.id, recorded.kind)
        self._drain()
        return result

    def undo(self) -> Optional[Transaction]:
        """
        Roll back the most recent transaction.

        The statements are restored from the previous snapshot (or from the
        seed when the log becomes empty). No-op when nothing is recorded.

        Returns:
            The transaction that was undone, or None.
        """
        with self._lock:
            removed = self._history.undo()
            if removed is None:
                return None
            self._transactions.pop()

            tail = self._history.tail
            if tail is None:
                restored = recompute(self._seed)
            else:
                restored = tail.statements
            self._publish(restored)

        logger.info(
            "Undid transaction #%s (%s)",
            removed.transaction.id,
            removed.transaction.kind,
        )
        self._drain()
        return removed.transaction

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce(
        transaction: TransactionInput,
    ) -> Union[Transaction, TransactionError]:
        try:
            if isinstance(transaction, Transaction):
                transaction.validate()
                return transaction
            return Transaction.from_mapping(transaction)
        except TransactionError as exc:
            return exc

    def _build_snapshot(self, statements: FullStatements) -> StateSnapshot:
        return StateSnapshot(
            statements=statements.copy(),
            transactions=tuple(self._transactions),
            history=self._history.entries,
            ratios=compute_ratios(statements, self._ratio_rules),
        )

    def _publish(self, statements: FullStatements) -> StateSnapshot:
        # Called with the lock held. ``statements`` stays private; the
        # snapshot holds its own copy.
        self._current = statements
        self._snapshot = self._build_snapshot(statements)
        self._pending.append((self._snapshot, tuple(self._observers)))
        return self._snapshot

    def _drain(self) -> None:
        """Deliver queued snapshots, oldest first.

        Only one thread drains at a time. A call made while another drain is
        running (from a re-entrant observer or a concurrent writer) returns
        at once; the running drain delivers its snapshot in turn.
        """
        with self._lock:
            if self._draining:
                return
            self._draining = True
        try:
            while True:
                with self._lock:
                    if not self._pending:
                        self._draining = False
                        return
                    snapshot, observers = self._pending.popleft()
                for observer in observers:
                    observer(snapshot)
        except BaseException:
            with self._lock:
                self._draining = False
            raise
