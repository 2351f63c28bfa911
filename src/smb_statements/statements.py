# SMB Statements - Interlinked financial statements simulator for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Statement model for SMB Statements.

This module defines the typed schema of the three interlinked statements and
keeps a strict separation between raw and derived fields:

1. Raw fields
   -----------
   Directly mutated monetary values, grouped in named sections:

   - ``BalanceSheet``: current_assets, non_current_assets,
     current_liabilities, non_current_liabilities, equity
     (each a mapping account name -> signed amount),
   - ``IncomeStatement``: revenue, cost_of_goods_sold, operating_expenses
     (category -> amount), other_income, interest_expense, tax_expense,
   - ``CashFlowStatement``: operating_activities (adjustments only),
     investing_activities, financing_activities.

   ``RawStatements`` bundles the three. It is the only input accepted by the
   transaction processor and the derived-value calculator.

2. Derived fields
   ---------------
   Totals computed from raw fields by ``engine.recompute()``:
   ``BalanceSheetTotals``, ``IncomeStatementTotals`` and ``CashFlowTotals``.
   ``FullStatements`` pairs a ``RawStatements`` with its totals. Derived
   values are never fed back as input: ``FullStatements.raw`` is all that
   is needed to rebuild them.

3. Canonical seed
   ---------------
   ``seed_statements()`` returns the fixed initial state used by
   ``initialize()`` and ``reset()``. A different seed can be loaded from a
   nested mapping (for example a TOML file) with
   ``raw_statements_from_mapping()``.

Account names are snake_case. Incoming mappings may use camelCase keys
(``accountsReceivable``, ``balanceSheet``), they are normalized on input.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# Raw statements
# ---------------------------------------------------------------------------


@dataclass
class BalanceSheet:
    """Raw balance sheet sections (account name -> signed amount)."""

    current_assets: dict[str, float] = field(default_factory=dict)
    non_current_assets: dict[str, float] = field(default_factory=dict)
    current_liabilities: dict[str, float] = field(default_factory=dict)
    non_current_liabilities: dict[str, float] = field(default_factory=dict)
    equity: dict[str, float] = field(default_factory=dict)

    def copy(self) -> "BalanceSheet":
        return BalanceSheet(
            current_assets=dict(self.current_assets),
            non_current_assets=dict(self.non_current_assets),
            current_liabilities=dict(self.current_liabilities),
            non_current_liabilities=dict(self.non_current_liabilities),
            equity=dict(self.equity),
        )


@dataclass
class IncomeStatement:
    """Raw income statement fields."""

    revenue: float = 0.0
    cost_of_goods_sold: float = 0.0
    operating_expenses: dict[str, float] = field(default_factory=dict)
    other_income: float = 0.0
    interest_expense: float = 0.0
    tax_expense: float = 0.0

    def copy(self) -> "IncomeStatement":
        return IncomeStatement(
            revenue=self.revenue,
            cost_of_goods_sold=self.cost_of_goods_sold,
            operating_expenses=dict(self.operating_expenses),
            other_income=self.other_income,
            interest_expense=self.interest_expense,
            tax_expense=self.tax_expense,
        )


@dataclass
class CashFlowStatement:
    """
    Raw cash-flow sections.

    ``operating_activities`` only holds adjustment accounts. Net income is
    mirrored from the income statement into ``CashFlowTotals.net_income`` at
    recompute time and is never stored here.
    """

    operating_activities: dict[str, float] = field(default_factory=dict)
    investing_activities: dict[str, float] = field(default_factory=dict)
    financing_activities: dict[str, float] = field(default_factory=dict)

    def copy(self) -> "CashFlowStatement":
        return CashFlowStatement(
            operating_activities=dict(self.operating_activities),
            investing_activities=dict(self.investing_activities),
            financing_activities=dict(self.financing_activities),
        )


@dataclass(frozen=True)
class RawStatements:
    """The three raw statements, as mutated by transactions."""

    balance_sheet: BalanceSheet
    income_statement: IncomeStatement
    cash_flow_statement: CashFlowStatement

    def copy(self) -> "RawStatements":
        """Return an independent deep copy (no shared section mappings)."""
        return RawStatements(
            balance_sheet=self.balance_sheet.copy(),
            income_statement=self.income_statement.copy(),
            cash_flow_statement=self.cash_flow_statement.copy(),
        )


# ---------------------------------------------------------------------------
# Derived statements
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BalanceSheetTotals:
    total_current_assets: float
    total_non_current_assets: float
    total_assets: float
    total_current_liabilities: float
    total_non_current_liabilities: float
    total_liabilities: float
    total_equity: float


@dataclass(frozen=True)
class IncomeStatementTotals:
    gross_profit: float
    total_operating_expenses: float
    operating_income: float
    income_before_tax: float
    net_income: float


@dataclass(frozen=True)
class CashFlowTotals:
    net_income: float
    total_operating_cash_flow: float
    total_investing_cash_flow: float
    total_financing_cash_flow: float
    net_cash_flow: float


@dataclass(frozen=True)
class FullStatements:
    """
    Raw statements together with every derived total.

    Instances are built by ``engine.recompute()`` only. Two instances compare
    equal when all raw and derived values are equal.
    """

    raw: RawStatements
    balance_sheet_totals: BalanceSheetTotals
    income_statement_totals: IncomeStatementTotals
    cash_flow_totals: CashFlowTotals

    @property
    def balance_sheet(self) -> BalanceSheet:
        return self.raw.balance_sheet

    @property
    def income_statement(self) -> IncomeStatement:
        return self.raw.income_statement

    @property
    def cash_flow_statement(self) -> CashFlowStatement:
        return self.raw.cash_flow_statement

    def copy(self) -> "FullStatements":
        # Totals are frozen, only the raw part needs a deep copy.
        return FullStatements(
            raw=self.raw.copy(),
            balance_sheet_totals=self.balance_sheet_totals,
            income_statement_totals=self.income_statement_totals,
            cash_flow_totals=self.cash_flow_totals,
        )


# ---------------------------------------------------------------------------
# Canonical seed
# ---------------------------------------------------------------------------

SEED_STATE: dict[str, Any] = {
    "balance_sheet": {
        "assets": {
            "current_assets": {
                "cash": 50000.0,
                "accounts_receivable": 25000.0,
                "inventory": 30000.0,
                "prepaid_expenses": 5000.0,
                "short_term_investments": 10000.0,
            },
            "non_current_assets": {
                "property": 150000.0,
                "equipment": 75000.0,
                "accumulated_depreciation": -25000.0,
                "long_term_investments": 40000.0,
                "intangible_assets": 15000.0,
            },
        },
        "liabilities": {
            "current_liabilities": {
                "accounts_payable": 20000.0,
                "short_term_debt": 10000.0,
                "accrued_expenses": 8000.0,
                "deferred_revenue": 5000.0,
                "taxes_payable": 7000.0,
            },
            "non_current_liabilities": {
                "long_term_debt": 100000.0,
                "deferred_tax_liabilities": 15000.0,
                "pension_liabilities": 20000.0,
            },
        },
        "equity": {
            "common_stock": 80000.0,
            "retained_earnings": 60000.0,
            "additional_paid_in_capital": 40000.0,
            "treasury_stock": -15000.0,
        },
    },
    "income_statement": {
        "revenue": 200000.0,
        "cost_of_goods_sold": 100000.0,
        "operating_expenses": {
            "salaries": 40000.0,
            "rent": 15000.0,
            "utilities": 5000.0,
            "marketing": 10000.0,
            "depreciation": 7500.0,
            "other": 12500.0,
        },
        "other_income": 5000.0,
        "interest_expense": 7500.0,
        "tax_expense": 10000.0,
    },
    "cash_flow_statement": {
        "operating_activities": {
            "depreciation": 7500.0,
            "change_in_inventory": -5000.0,
            "change_in_accounts_receivable": -3000.0,
            "change_in_accounts_payable": 2000.0,
            "change_in_accrued_expenses": 1500.0,
            "other_operating_adjustments": 1000.0,
        },
        "investing_activities": {
            "purchase_of_equipment": -15000.0,
            "purchase_of_investments": -5000.0,
            "sale_of_investments": 2000.0,
        },
        "financing_activities": {
            "debt_repayment": -10000.0,
            "dividends_paid": -5000.0,
            "issuance_of_stock": 0.0,
        },
    },
}


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def snake_case(name: str) -> str:
    """Normalize an account or field name to snake_case.

    ``accountsReceivable`` -> ``accounts_receivable``; ``short-term`` and
    already snake_case names are left unchanged apart from lowercasing.
    """
    return _CAMEL_BOUNDARY.sub("_", str(name).strip()).lower()


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    """Return the sub-mapping stored under ``key`` (snake or camel), or {}."""
    for raw_key, value in data.items():
        if snake_case(raw_key) == key:
            if not isinstance(value, Mapping):
                raise ValueError(f"Expected a table for {key!r}, got {value!r}.")
            return value
    return {}


def _amounts(data: Mapping[str, Any], where: str) -> dict[str, float]:
    """Convert a mapping of account -> amount into snake_case keys / floats."""
    out: dict[str, float] = {}
    for key, value in data.items():
        if isinstance(value, Mapping):
            # Nested tables are not accounts (e.g. a stray derived block).
            continue
        try:
            out[snake_case(key)] = float(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(
                f"Invalid amount for {where}.{key}: {value!r}. Expected a number."
            ) from exc
    return out


def _scalar(data: Mapping[str, Any], key: str, where: str) -> float:
    for raw_key, value in data.items():
        if snake_case(raw_key) == key:
            try:
                return float(value)
            except (TypeError, ValueError) as exc:
                raise ValueError(
                    f"Invalid amount for {where}.{key}: {value!r}. "
                    "Expected a number."
                ) from exc
    return 0.0


def raw_statements_from_mapping(data: Mapping[str, Any]) -> RawStatements:
    """
    Build ``RawStatements`` from a nested mapping.

    The expected shape mirrors ``SEED_STATE``::

        balance_sheet.assets.{current_assets, non_current_assets}
        balance_sheet.liabilities.{current_liabilities, non_current_liabilities}
        balance_sheet.equity
        income_statement.{revenue, cost_of_goods_sold, operating_expenses, ...}
        cash_flow_statement.{operating_activities, investing_activities,
                             financing_activities}

    Keys may be camelCase or snake_case. Derived fields (``totalAssets``,
    ``grossProfit``, ``operatingActivities.netIncome``...) are ignored, so a
    previously published snapshot can be fed back safely.

    Raises:
        ValueError: if a section is not a table or an amount is not numeric.
    """
    bs_data = _section(data, "balance_sheet")
    assets = _section(bs_data, "assets")
    liabilities = _section(bs_data, "liabilities")

    balance_sheet = BalanceSheet(
        current_assets=_amounts(_section(assets, "current_assets"), "current_assets"),
        non_current_assets=_amounts(
            _section(assets, "non_current_assets"), "non_current_assets"
        ),
        current_liabilities=_amounts(
            _section(liabilities, "current_liabilities"), "current_liabilities"
        ),
        non_current_liabilities=_amounts(
            _section(liabilities, "non_current_liabilities"),
            "non_current_liabilities",
        ),
        equity=_amounts(_section(bs_data, "equity"), "equity"),
    )

    is_data = _section(data, "income_statement")
    income_statement = IncomeStatement(
        revenue=_scalar(is_data, "revenue", "income_statement"),
        cost_of_goods_sold=_scalar(is_data, "cost_of_goods_sold", "income_statement"),
        operating_expenses=_amounts(
            _section(is_data, "operating_expenses"), "operating_expenses"
        ),
        other_income=_scalar(is_data, "other_income", "income_statement"),
        interest_expense=_scalar(is_data, "interest_expense", "income_statement"),
        tax_expense=_scalar(is_data, "tax_expense", "income_statement"),
    )

    cf_data = _section(data, "cash_flow_statement")
    operating = _amounts(
        _section(cf_data, "operating_activities"), "operating_activities"
    )
    operating.pop("net_income", None)

    cash_flow_statement = CashFlowStatement(
        operating_activities=operating,
        investing_activities=_amounts(
            _section(cf_data, "investing_activities"), "investing_activities"
        ),
        financing_activities=_amounts(
            _section(cf_data, "financing_activities"), "financing_activities"
        ),
    )

    return RawStatements(
        balance_sheet=balance_sheet,
        income_statement=income_statement,
        cash_flow_statement=cash_flow_statement,
    )


def seed_statements() -> RawStatements:
    """Return a fresh copy of the canonical initial statements."""
    return raw_statements_from_mapping(SEED_STATE)
