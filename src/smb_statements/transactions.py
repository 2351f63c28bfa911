# SMB Statements - Interlinked financial statements simulator for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Transaction model for SMB Statements.

A transaction is a single typed business event. Its ``kind`` selects the
rule set applied by the processor (see processor.py):

    sale, purchase, expense, asset-purchase, loan, loan-payment,
    equity-investment, dividend, depreciation, custom

Transactions are immutable. Once recorded by ``FinancialState`` they carry a
sequential ``id`` and a UTC ``created_at`` timestamp.

Input forms, CSV/JSON readers and tests build transactions either directly
or from a plain mapping with ``Transaction.from_mapping()``, which performs
the minimal shape validation required by each kind.
"""

import math
import numbers
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Optional

from .errors import MalformedTransaction, UnknownTransactionKind
from .statements import snake_case

SALE = "sale"
PURCHASE = "purchase"
EXPENSE = "expense"
ASSET_PURCHASE = "asset-purchase"
LOAN = "loan"
LOAN_PAYMENT = "loan-payment"
EQUITY_INVESTMENT = "equity-investment"
DIVIDEND = "dividend"
DEPRECIATION = "depreciation"
CUSTOM = "custom"

TRANSACTION_KINDS: tuple[str, ...] = (
    SALE,
    PURCHASE,
    EXPENSE,
    ASSET_PURCHASE,
    LOAN,
    LOAN_PAYMENT,
    EQUITY_INVESTMENT,
    DIVIDEND,
    DEPRECIATION,
    CUSTOM,
)

PAYMENT_METHODS: tuple[str, ...] = ("cash", "credit")
ASSET_TYPES: tuple[str, ...] = ("equipment", "property", "investment")
TERMS: tuple[str, ...] = ("short-term", "long-term")

# Kinds whose balance-sheet side depends on the payment method.
_PAYMENT_KINDS = {SALE, PURCHASE, EXPENSE}
_TERM_KINDS = {LOAN, LOAN_PAYMENT}


@dataclass(frozen=True)
class CustomEdit:
    """One ``{statement, account, sub_account, change}`` edit of a custom
    transaction."""

    statement: str
    account: str
    sub_account: Optional[str]
    change: float


@dataclass(frozen=True)
class Transaction:
    """
    A typed business event.

    Attributes:
        kind: One of ``TRANSACTION_KINDS``.
        amount: Transaction amount. Custom transactions may leave it at 0.0,
            their effect is entirely described by ``affects``.
        payment_method: 'cash' or 'credit' (sale, purchase, expense).
            A missing method follows the credit branch.
        cogs: Optional cost of goods sold attached to a sale.
        expense_type: Operating expense category; unknown categories fall
            into 'other'.
        asset_type: 'equipment', 'property' or 'investment'.
        term: 'short-term' or 'long-term' (loan, loan-payment).
        principal / interest: Optional split of a loan payment.
        affects: Ordered edits of a custom transaction.
        description: Free text label.
        id / created_at: Assigned when the transaction is recorded.
    """

    kind: str
    amount: float = 0.0
    payment_method: Optional[str] = None
    cogs: Optional[float] = None
    expense_type: Optional[str] = None
    asset_type: Optional[str] = None
    term: Optional[str] = None
    principal: Optional[float] = None
    interest: Optional[float] = None
    affects: tuple[CustomEdit, ...] = ()
    description: str = ""
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def is_recorded(self) -> bool:
        return self.id is not None

    @property
    def is_cash(self) -> bool:
        return self.payment_method == "cash"

    @property
    def is_short_term(self) -> bool:
        return self.term == "short-term"

    def recorded(self, transaction_id: int, created_at: datetime) -> "Transaction":
        """Return a copy stamped with a log id and a creation timestamp."""
        return replace(self, id=transaction_id, created_at=created_at)

    def as_dict(self) -> dict[str, Any]:
        """Plain-dict representation (for views and JSON export)."""
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "type": self.kind,
            "amount": self.amount,
            "payment_method": self.payment_method,
            "cogs": self.cogs,
            "expense_type": self.expense_type,
            "asset_type": self.asset_type,
            "term": self.term,
            "principal": self.principal,
            "interest": self.interest,
            "affects": [
                {
                    "statement": e.statement,
                    "account": e.account,
                    "sub_account": e.sub_account,
                    "change": e.change,
                }
                for e in self.affects
            ],
            "description": self.description,
        }

    def validate(self) -> None:
        """
        Check the typed fields against the shape required by ``kind``.

        Transactions built directly (not through ``from_mapping``) go through
        the same checks before they reach the processor.

        Raises:
            UnknownTransactionKind: if the kind is not supported.
            MalformedTransaction: if a field is missing, not a finite number
                or not one of its allowed values.
        """
        if self.kind not in TRANSACTION_KINDS:
            raise UnknownTransactionKind(self.kind)

        if self.kind != CUSTOM or self.amount is not None:
            _check_number(self.amount, "amount")
        for name in ("cogs", "principal", "interest"):
            value = getattr(self, name)
            if value is not None:
                _check_number(value, name)

        for name, choices in (
            ("payment_method", PAYMENT_METHODS),
            ("asset_type", ASSET_TYPES),
            ("term", TERMS),
        ):
            value = getattr(self, name)
            if value is not None and value not in choices:
                raise MalformedTransaction(
                    f"Invalid '{name}': {value!r}. Expected one of: "
                    f"{', '.join(choices)}.",
                    name,
                )

        if self.kind == ASSET_PURCHASE and self.asset_type is None:
            raise MalformedTransaction(
                "Asset purchase requires an 'asset_type' "
                f"({', '.join(ASSET_TYPES)}).",
                "asset_type",
            )

        if self.kind == CUSTOM:
            if not self.affects:
                raise MalformedTransaction(
                    "Custom transaction requires a non-empty 'affects' list.",
                    "affects",
                )
            for index, edit in enumerate(self.affects):
                if not isinstance(edit, CustomEdit):
                    raise MalformedTransaction(
                        f"affects[{index}] must be a CustomEdit, got {edit!r}.",
                        "affects",
                    )
                _check_number(edit.change, f"affects[{index}].change")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Transaction":
        """
        Build and validate a transaction from a plain mapping.

        Keys may be snake_case or camelCase (``paymentMethod``,
        ``expenseType``, ``subAccount``...). The kind is read from ``type``
        (or ``kind``). Empty strings and NaN values count as absent, so rows
        coming from a CSV file can be passed through as-is.

        Raises:
            UnknownTransactionKind: if the kind is not supported.
            MalformedTransaction: if a field required by the kind is missing
                or does not have the expected type/value.
        """
        fields = {snake_case(k): v for k, v in data.items()}
        fields = {k: v for k, v in fields.items() if not _is_blank(v)}

        kind = fields.get("type", fields.get("kind"))
        if kind is None:
            raise MalformedTransaction("Transaction is missing its 'type'.", "type")
        kind = str(kind).strip().lower()
        if kind not in TRANSACTION_KINDS:
            raise UnknownTransactionKind(kind)

        if kind == CUSTOM:
            amount = _optional_number(fields, "amount") or 0.0
            affects = _parse_affects(fields.get("affects"))
        else:
            amount = _required_number(fields, "amount")
            affects = ()

        payment_method = _optional_choice(fields, "payment_method", PAYMENT_METHODS)
        if kind in _PAYMENT_KINDS and payment_method is None:
            payment_method = "credit"

        asset_type = _optional_choice(fields, "asset_type", ASSET_TYPES)
        if kind == ASSET_PURCHASE and asset_type is None:
            raise MalformedTransaction(
                "Asset purchase requires an 'asset_type' "
                f"({', '.join(ASSET_TYPES)}).",
                "asset_type",
            )

        term = _optional_choice(fields, "term", TERMS)
        if kind in _TERM_KINDS and term is None:
            term = "long-term"

        expense_type = fields.get("expense_type")
        created_at = fields.get("created_at", fields.get("date"))
        if created_at is not None and not isinstance(created_at, datetime):
            try:
                created_at = datetime.fromisoformat(str(created_at))
            except ValueError as exc:
                raise MalformedTransaction(
                    f"Invalid 'created_at' timestamp: {created_at!r}.", "created_at"
                ) from exc

        raw_id = fields.get("id")
        try:
            transaction_id = int(raw_id) if raw_id is not None else None
        except (TypeError, ValueError) as exc:
            raise MalformedTransaction(f"Invalid 'id': {raw_id!r}.", "id") from exc

        transaction = cls(
            kind=kind,
            amount=amount,
            payment_method=payment_method,
            cogs=_optional_number(fields, "cogs"),
            expense_type=snake_case(expense_type) if expense_type else None,
            asset_type=asset_type,
            term=term,
            principal=_optional_number(fields, "principal"),
            interest=_optional_number(fields, "interest"),
            affects=affects,
            description=str(fields.get("description", "")),
            id=transaction_id,
            created_at=created_at,
        )
        transaction.validate()
        return transaction


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return False


def _to_number(value: Any, name: str) -> float:
    # bool is an int subclass but never a valid amount.
    if isinstance(value, bool):
        raise MalformedTransaction(f"Field '{name}' must be numeric.", name)
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise MalformedTransaction(
            f"Field '{name}' must be numeric, got {value!r}.", name
        ) from exc
    if not math.isfinite(number):
        raise MalformedTransaction(f"Field '{name}' must be finite.", name)
    return number


def _check_number(value: Any, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise MalformedTransaction(
            f"Field '{name}' must be numeric, got {value!r}.", name
        )
    if not math.isfinite(value):
        raise MalformedTransaction(f"Field '{name}' must be finite.", name)


def _required_number(fields: Mapping[str, Any], name: str) -> float:
    if name not in fields:
        raise MalformedTransaction(f"Transaction is missing '{name}'.", name)
    return _to_number(fields[name], name)


def _optional_number(fields: Mapping[str, Any], name: str) -> Optional[float]:
    if name not in fields:
        return None
    return _to_number(fields[name], name)


def _optional_choice(
    fields: Mapping[str, Any], name: str, choices: tuple[str, ...]
) -> Optional[str]:
    if name not in fields:
        return None
    value = str(fields[name]).strip().lower()
    if value not in choices:
        raise MalformedTransaction(
            f"Invalid '{name}': {fields[name]!r}. Expected one of: "
            f"{', '.join(choices)}.",
            name,
        )
    return value


def _parse_affects(raw: Any) -> tuple[CustomEdit, ...]:
    if raw is None:
        raise MalformedTransaction(
            "Custom transaction requires a non-empty 'affects' list.", "affects"
        )
    if isinstance(raw, (str, bytes, Mapping)) or not isinstance(raw, Sequence):
        raise MalformedTransaction("'affects' must be a list of edits.", "affects")
    if not raw:
        raise MalformedTransaction(
            "Custom transaction requires a non-empty 'affects' list.", "affects"
        )

    edits: list[CustomEdit] = []
    for index, item in enumerate(raw):
        if isinstance(item, CustomEdit):
            edits.append(item)
            continue
        if not isinstance(item, Mapping):
            raise MalformedTransaction(
                f"affects[{index}] must be a mapping, got {item!r}.", "affects"
            )
        edit = {snake_case(k): v for k, v in item.items()}
        for key in ("statement", "account"):
            if _is_blank(edit.get(key)):
                raise MalformedTransaction(
                    f"affects[{index}] is missing '{key}'.", "affects"
                )
        if "change" not in edit:
            raise MalformedTransaction(
                f"affects[{index}] is missing 'change'.", "affects"
            )
        sub_account = edit.get("sub_account")
        edits.append(
            CustomEdit(
                statement=snake_case(edit["statement"]),
                account=snake_case(edit["account"]),
                sub_account=None if _is_blank(sub_account) else snake_case(sub_account),
                change=_to_number(edit["change"], f"affects[{index}].change"),
            )
        )
    return tuple(edits)
