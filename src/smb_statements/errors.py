# SMB Statements - Interlinked financial statements simulator for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Error kinds reported by the transaction pipeline.

All errors derive from ``TransactionError``, itself a ``ValueError``, so that
callers that already handle ``ValueError`` for invalid input keep working.

The processor does not raise these errors while applying a transaction:
it returns them inside a ``ProcessResult`` (see processor.py). They are only
raised by ``Transaction.from_mapping()`` and ``Transaction.validate()``, and by
``ProcessResult.raise_for_error()`` when a caller prefers exceptions.
"""

from typing import Any, Optional


class TransactionError(ValueError):
    """Base class for all transaction-related errors."""


class UnknownTransactionKind(TransactionError):
    """The transaction type is not one of the supported kinds."""

    def __init__(self, kind: Any) -> None:
        self.kind = kind
        super().__init__(f"Unknown transaction kind: {kind!r}")


class MalformedTransaction(TransactionError):
    """A field required by the transaction kind is missing or invalid."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        self.field = field
        super().__init__(message)


class UnknownCustomTarget(TransactionError):
    """A custom edit whose statement/account/sub-account cannot be routed."""

    def __init__(
        self, statement: str, account: str, sub_account: Optional[str]
    ) -> None:
        self.statement = statement
        self.account = account
        self.sub_account = sub_account
        target = f"{statement}.{account}"
        if sub_account:
            target += f".{sub_account}"
        super().__init__(f"Cannot route custom edit to {target!r}")
