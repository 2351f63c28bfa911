# SMB Statements - Interlinked financial statements simulator for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Derived-value engine for SMB Statements.

This module turns raw statements into fully derived statements and exposes
them as a flat set of measures for the ratio engine.

1. Recomputation
   --------------
   ``recompute(raw)`` computes every derived field from raw fields only:

   - balance sheet: section totals, total assets / liabilities / equity,
   - income statement: gross profit, operating expenses, operating income,
     income before tax, net income,
   - cash flow: net income mirrored from the income statement, operating /
     investing / financing totals, net cash flow.

   The function is pure and idempotent:
       recompute(recompute(x).raw) == recompute(x)
   It copies its input, so the returned ``FullStatements`` never shares
   mutable sections with the caller.

2. Measures
   ---------
   ``build_measures(full)`` flattens a ``FullStatements`` into a dictionary
   {measure_key -> float} used by ratio formulas (see ratios.py):

   - balance sheet accounts under their own name (``cash``, ``inventory``),
   - income statement scalars (``revenue``, ``interest_expense``...),
   - operating expense categories prefixed with ``opex_``,
   - cash-flow accounts prefixed with ``cfo_`` / ``cfi_`` / ``cff_``
     (operating / investing / financing),
   - every derived total (``total_assets``, ``net_income``...).

   ``MEASURE_LABELS`` provides human-readable labels for the derived totals.
"""

from collections.abc import Mapping
from dataclasses import asdict

from .statements import (
    BalanceSheetTotals,
    CashFlowTotals,
    FullStatements,
    IncomeStatementTotals,
    RawStatements,
)

MEASURE_LABELS: dict[str, str] = {
    "total_current_assets": "Total current assets",
    "total_non_current_assets": "Total non-current assets",
    "total_assets": "Total assets",
    "total_current_liabilities": "Total current liabilities",
    "total_non_current_liabilities": "Total non-current liabilities",
    "total_liabilities": "Total liabilities",
    "total_equity": "Total equity",
    "gross_profit": "Gross profit",
    "total_operating_expenses": "Total operating expenses",
    "operating_income": "Operating income",
    "income_before_tax": "Income before tax",
    "net_income": "Net income",
    "total_operating_cash_flow": "Cash flow from operating activities",
    "total_investing_cash_flow": "Cash flow from investing activities",
    "total_financing_cash_flow": "Cash flow from financing activities",
    "net_cash_flow": "Net cash flow",
}


def _total(section: Mapping[str, float]) -> float:
    return float(sum(section.values()))


def recompute(raw: RawStatements) -> FullStatements:
    """Compute all derived totals from the raw fields of ``raw``.

    Args:
        raw: Raw statements. Not modified.

    Returns:
        A new ``FullStatements`` holding a copy of ``raw`` and its totals.
    """
    raw = raw.copy()
    bs = raw.balance_sheet
    inc = raw.income_statement
    cfs = raw.cash_flow_statement

    # 1) Balance sheet
    total_current_assets = _total(bs.current_assets)
    total_non_current_assets = _total(bs.non_current_assets)
    total_current_liabilities = _total(bs.current_liabilities)
    total_non_current_liabilities = _total(bs.non_current_liabilities)

    bs_totals = BalanceSheetTotals(
        total_current_assets=total_current_assets,
        total_non_current_assets=total_non_current_assets,
        total_assets=total_current_assets + total_non_current_assets,
        total_current_liabilities=total_current_liabilities,
        total_non_current_liabilities=total_non_current_liabilities,
        total_liabilities=total_current_liabilities + total_non_current_liabilities,
        total_equity=_total(bs.equity),
    )

    # 2) Income statement
    gross_profit = inc.revenue - inc.cost_of_goods_sold
    total_operating_expenses = _total(inc.operating_expenses)
    operating_income = gross_profit - total_operating_expenses
    income_before_tax = operating_income + inc.other_income - inc.interest_expense
    net_income = income_before_tax - inc.tax_expense

    is_totals = IncomeStatementTotals(
        gross_profit=gross_profit,
        total_operating_expenses=total_operating_expenses,
        operating_income=operating_income,
        income_before_tax=income_before_tax,
        net_income=net_income,
    )

    # 3) Cash flow (net income is mirrored, never stored in the raw section)
    total_operating_cash_flow = net_income + _total(cfs.operating_activities)
    total_investing_cash_flow = _total(cfs.investing_activities)
    total_financing_cash_flow = _total(cfs.financing_activities)

    cf_totals = CashFlowTotals(
        net_income=net_income,
        total_operating_cash_flow=total_operating_cash_flow,
        total_investing_cash_flow=total_investing_cash_flow,
        total_financing_cash_flow=total_financing_cash_flow,
        net_cash_flow=(
            total_operating_cash_flow
            + total_investing_cash_flow
            + total_financing_cash_flow
        ),
    )

    return FullStatements(
        raw=raw,
        balance_sheet_totals=bs_totals,
        income_statement_totals=is_totals,
        cash_flow_totals=cf_totals,
    )


def build_measures(statements: FullStatements) -> dict[str, float]:
    """Flatten ``statements`` into a {measure_key -> float} dictionary.

    Raw balance sheet accounts are unique across sections and keep their own
    names; sections that could collide (operating expense categories and
    cash-flow accounts) are prefixed. Derived totals are added last and win
    over any raw account sharing their name.
    """
    bs = statements.balance_sheet
    inc = statements.income_statement
    cfs = statements.cash_flow_statement

    measures: dict[str, float] = {}

    for section in (
        bs.current_assets,
        bs.non_current_assets,
        bs.current_liabilities,
        bs.non_current_liabilities,
        bs.equity,
    ):
        measures.update({k: float(v) for k, v in section.items()})

    measures["revenue"] = float(inc.revenue)
    measures["cost_of_goods_sold"] = float(inc.cost_of_goods_sold)
    measures["other_income"] = float(inc.other_income)
    measures["interest_expense"] = float(inc.interest_expense)
    measures["tax_expense"] = float(inc.tax_expense)
    measures.update({f"opex_{k}": float(v) for k, v in inc.operating_expenses.items()})

    for prefix, section in (
        ("cfo", cfs.operating_activities),
        ("cfi", cfs.investing_activities),
        ("cff", cfs.financing_activities),
    ):
        measures.update({f"{prefix}_{k}": float(v) for k, v in section.items()})

    measures.update(asdict(statements.balance_sheet_totals))
    measures.update(asdict(statements.income_statement_totals))
    measures.update(asdict(statements.cash_flow_totals))

    return measures
