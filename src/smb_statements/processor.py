# SMB Statements - Interlinked financial statements simulator for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Transaction processor for SMB Statements.

``apply_transaction(statements, transaction)`` maps one typed business event
onto coordinated mutations of the three raw statements. It is a pure
transformation: the input statements are copied first and never mutated.

Rule sets per kind
------------------
- sale:               revenue, cash or accounts_receivable, optional cogs
                      (cost_of_goods_sold / inventory), operating adjustment.
- purchase:           inventory, then cash or accounts_payable.
- expense:            operating_expenses[expense_type] (or 'other'), then
                      cash or accounts_payable.
- asset-purchase:     equipment / property / long_term_investments, investing
                      outflow, cash.
- loan:               cash, short_term_debt or long_term_debt, debt_repayment.
- loan-payment:       cash, principal against debt, interest_expense,
                      debt_repayment.
- equity-investment:  cash, common_stock, issuance_of_stock.
- dividend:           cash, retained_earnings, dividends_paid.
- depreciation:       operating_expenses.depreciation,
                      accumulated_depreciation, operating depreciation.
- custom:             arbitrary ``{statement, account, sub_account, change}``
                      edits applied in order.

Loan issuance and repayment both write into ``debt_repayment`` with opposite
signs, and no rule enforces total_assets == total_liabilities + total_equity.
Both behaviours are part of the model and are kept as-is.

Results
-------
The processor never raises for business reasons. It returns a
``ProcessResult`` tagged ``ok=True`` (with the new raw statements) or
``ok=False`` (with the error and no statements). Custom edits that cannot be
routed are skipped and listed in ``dropped_edits``; the other edits of the
same transaction still apply.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from .errors import (
    MalformedTransaction,
    TransactionError,
    UnknownCustomTarget,
    UnknownTransactionKind,
)
from .statements import RawStatements
from .transactions import (
    ASSET_PURCHASE,
    ASSET_TYPES,
    CUSTOM,
    DEPRECIATION,
    DIVIDEND,
    EQUITY_INVESTMENT,
    EXPENSE,
    LOAN,
    LOAN_PAYMENT,
    PURCHASE,
    SALE,
    CustomEdit,
    Transaction,
)

logger = logging.getLogger(__name__)

# Share of a loan payment treated as principal when the transaction does not
# say; the remainder is interest.
DEFAULT_PRINCIPAL_SHARE = 0.8

# Income statement fields that custom edits address directly (no sub-account).
_INCOME_SCALARS = (
    "revenue",
    "cost_of_goods_sold",
    "other_income",
    "interest_expense",
    "tax_expense",
)


@dataclass(frozen=True)
class ProcessResult:
    """
    Outcome of applying one transaction.

    Attributes:
        ok: True when the transaction was applied.
        statements: New raw statements (None on failure).
        error: The error that rejected the transaction (None on success).
        dropped_edits: Custom edits skipped because their target could not be
            routed, each paired with its ``UnknownCustomTarget`` error.
    """

    ok: bool
    statements: Optional[RawStatements] = None
    error: Optional[TransactionError] = None
    dropped_edits: tuple[tuple[CustomEdit, UnknownCustomTarget], ...] = ()

    @classmethod
    def success(
        cls,
        statements: RawStatements,
        dropped_edits: tuple[tuple[CustomEdit, UnknownCustomTarget], ...] = (),
    ) -> "ProcessResult":
        return cls(ok=True, statements=statements, dropped_edits=dropped_edits)

    @classmethod
    def failure(cls, error: TransactionError) -> "ProcessResult":
        return cls(ok=False, error=error)

    def raise_for_error(self) -> None:
        """Raise the carried error if the transaction was rejected."""
        if self.error is not None:
            raise self.error


def _add(section: dict[str, float], account: str, delta: float) -> None:
    """Add ``delta`` to ``section[account]``, opening the account if needed."""
    section[account] = section.get(account, 0.0) + delta


def loan_payment_split(
    transaction: Transaction, principal_share: float = DEFAULT_PRINCIPAL_SHARE
) -> tuple[float, float]:
    """
    Return the (principal, interest) split of a loan payment.

    Explicit ``principal`` / ``interest`` values win, each independently;
    missing parts are estimated from ``amount`` with ``principal_share``.
    An explicit 0 is honoured as 0.
    """
    principal = transaction.principal
    if principal is None:
        principal = transaction.amount * principal_share
    interest = transaction.interest
    if interest is None:
        interest = transaction.amount * (1.0 - principal_share)
    return principal, interest


# ---------------------------------------------------------------------------
# Rule sets
# ---------------------------------------------------------------------------


def _apply_payment_side(s: RawStatements, tx: Transaction) -> None:
    """Cash or credit settlement shared by purchase and expense."""
    bs = s.balance_sheet
    ops = s.cash_flow_statement.operating_activities
    if tx.is_cash:
        _add(bs.current_assets, "cash", -tx.amount)
        _add(ops, "other_operating_adjustments", -tx.amount)
    else:
        _add(bs.current_liabilities, "accounts_payable", tx.amount)
        _add(ops, "change_in_accounts_payable", tx.amount)


def _apply_sale(s: RawStatements, tx: Transaction) -> None:
    bs = s.balance_sheet
    inc = s.income_statement
    ops = s.cash_flow_statement.operating_activities

    inc.revenue += tx.amount
    if tx.is_cash:
        _add(bs.current_assets, "cash", tx.amount)
        _add(ops, "other_operating_adjustments", tx.amount)
    else:
        _add(bs.current_assets, "accounts_receivable", tx.amount)
        _add(ops, "change_in_accounts_receivable", -tx.amount)

    if tx.cogs:
        inc.cost_of_goods_sold += tx.cogs
        _add(bs.current_assets, "inventory", -tx.cogs)


def _apply_purchase(s: RawStatements, tx: Transaction) -> None:
    _add(s.balance_sheet.current_assets, "inventory", tx.amount)
    _apply_payment_side(s, tx)


def _apply_expense(s: RawStatements, tx: Transaction) -> None:
    expenses = s.income_statement.operating_expenses
    category = tx.expense_type if tx.expense_type in expenses else "other"
    _add(expenses, category, tx.amount)
    _apply_payment_side(s, tx)


def _apply_asset_purchase(s: RawStatements, tx: Transaction) -> None:
    assets = s.balance_sheet.non_current_assets
    investing = s.cash_flow_statement.investing_activities
    if tx.asset_type == "investment":
        _add(assets, "long_term_investments", tx.amount)
        _add(investing, "purchase_of_investments", -tx.amount)
    else:
        # equipment and property share the same investing bucket
        _add(assets, str(tx.asset_type), tx.amount)
        _add(investing, "purchase_of_equipment", -tx.amount)
    _add(s.balance_sheet.current_assets, "cash", -tx.amount)


def _apply_loan(s: RawStatements, tx: Transaction) -> None:
    bs = s.balance_sheet
    _add(bs.current_assets, "cash", tx.amount)
    if tx.is_short_term:
        _add(bs.current_liabilities, "short_term_debt", tx.amount)
    else:
        _add(bs.non_current_liabilities, "long_term_debt", tx.amount)
    _add(s.cash_flow_statement.financing_activities, "debt_repayment", tx.amount)


def _apply_loan_payment(
    s: RawStatements, tx: Transaction, principal_share: float
) -> None:
    bs = s.balance_sheet
    principal, interest = loan_payment_split(tx, principal_share)

    _add(bs.current_assets, "cash", -tx.amount)
    if tx.is_short_term:
        _add(bs.current_liabilities, "short_term_debt", -principal)
    else:
        _add(bs.non_current_liabilities, "long_term_debt", -principal)
    s.income_statement.interest_expense += interest
    _add(s.cash_flow_statement.financing_activities, "debt_repayment", -principal)


def _apply_equity_investment(s: RawStatements, tx: Transaction) -> None:
    _add(s.balance_sheet.current_assets, "cash", tx.amount)
    _add(s.balance_sheet.equity, "common_stock", tx.amount)
    _add(s.cash_flow_statement.financing_activities, "issuance_of_stock", tx.amount)


def _apply_dividend(s: RawStatements, tx: Transaction) -> None:
    _add(s.balance_sheet.current_assets, "cash", -tx.amount)
    _add(s.balance_sheet.equity, "retained_earnings", -tx.amount)
    _add(s.cash_flow_statement.financing_activities, "dividends_paid", -tx.amount)


def _apply_depreciation(s: RawStatements, tx: Transaction) -> None:
    _add(s.income_statement.operating_expenses, "depreciation", tx.amount)
    _add(s.balance_sheet.non_current_assets, "accumulated_depreciation", -tx.amount)
    _add(s.cash_flow_statement.operating_activities, "depreciation", tx.amount)


def _route_custom_edit(s: RawStatements, edit: CustomEdit) -> bool:
    """
    Apply one custom edit. Return False when its target cannot be routed.

    Sub-accounts are looked up in the sections of the addressed account, in
    order (current before non-current). Only existing accounts are edited,
    except operating expenses where unknown categories fall into 'other'.
    """
    sub = edit.sub_account

    def _first_match(*sections: dict[str, float]) -> bool:
        for section in sections:
            if sub is not None and sub in section:
                section[sub] += edit.change
                return True
        return False

    if edit.statement == "balance_sheet":
        bs = s.balance_sheet
        if edit.account == "assets":
            return _first_match(bs.current_assets, bs.non_current_assets)
        if edit.account == "liabilities":
            return _first_match(bs.current_liabilities, bs.non_current_liabilities)
        if edit.account == "equity":
            return _first_match(bs.equity)
        return False

    if edit.statement == "income_statement":
        inc = s.income_statement
        if edit.account in _INCOME_SCALARS:
            setattr(inc, edit.account, getattr(inc, edit.account) + edit.change)
            return True
        if edit.account == "operating_expenses":
            category = sub if sub in inc.operating_expenses else "other"
            _add(inc.operating_expenses, category, edit.change)
            return True
        return False

    if edit.statement == "cash_flow_statement":
        cfs = s.cash_flow_statement
        sections = {
            "operating_activities": cfs.operating_activities,
            "investing_activities": cfs.investing_activities,
            "financing_activities": cfs.financing_activities,
        }
        if edit.account in sections:
            return _first_match(sections[edit.account])
        return False

    return False


def _apply_custom(
    s: RawStatements, tx: Transaction
) -> tuple[tuple[CustomEdit, UnknownCustomTarget], ...]:
    dropped: list[tuple[CustomEdit, UnknownCustomTarget]] = []
    for edit in tx.affects:
        if not _route_custom_edit(s, edit):
            error = UnknownCustomTarget(edit.statement, edit.account, edit.sub_account)
            logger.warning("Dropped custom edit: %s", error)
            dropped.append((edit, error))
    return tuple(dropped)


_RULES: dict[str, Callable[[RawStatements, Transaction], None]] = {
    SALE: _apply_sale,
    PURCHASE: _apply_purchase,
    EXPENSE: _apply_expense,
    ASSET_PURCHASE: _apply_asset_purchase,
    LOAN: _apply_loan,
    EQUITY_INVESTMENT: _apply_equity_investment,
    DIVIDEND: _apply_dividend,
    DEPRECIATION: _apply_depreciation,
}


def apply_transaction(
    statements: RawStatements,
    transaction: Transaction,
    principal_share: float = DEFAULT_PRINCIPAL_SHARE,
) -> ProcessResult:
    """
    Apply ``transaction`` to a copy of ``statements``.

    Args:
        statements: Current raw statements. Left untouched.
        transaction: The business event to apply.
        principal_share: Share of a loan payment attributed to principal
            when the transaction does not carry an explicit split.

    Returns:
        A ``ProcessResult``. On success, ``statements`` holds the new raw
        state (derived totals must be recomputed with ``engine.recompute``).
        An unsupported kind yields ``ok=False`` with an
        ``UnknownTransactionKind`` error.
    """
    asset_type = transaction.asset_type
    if transaction.kind == ASSET_PURCHASE and asset_type not in ASSET_TYPES:
        return ProcessResult.failure(
            MalformedTransaction(
                f"Invalid asset_type {asset_type!r} for asset purchase.",
                "asset_type",
            )
        )

    new_state = statements.copy()

    if transaction.kind == CUSTOM:
        dropped = _apply_custom(new_state, transaction)
        logger.debug(
            "Applied custom transaction (%d edits, %d dropped)",
            len(transaction.affects),
            len(dropped),
        )
        return ProcessResult.success(new_state, dropped)

    if transaction.kind == LOAN_PAYMENT:
        _apply_loan_payment(new_state, transaction, principal_share)
    else:
        rule = _RULES.get(transaction.kind)
        if rule is None:
            return ProcessResult.failure(UnknownTransactionKind(transaction.kind))
        rule(new_state, transaction)

    logger.debug(
        "Applied %s transaction (amount=%s)", transaction.kind, transaction.amount
    )
    return ProcessResult.success(new_state)
