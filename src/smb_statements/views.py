# SMB Statements - Interlinked financial statements simulator for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for SMB Statements.

This module turns published statements, ratio reports and transaction logs
into pandas DataFrames ready for display (``DataFrame.to_string``) or CSV
export. It performs no accounting logic.

Statement views share a common set of columns:

    display_order, section, name, type, amount

- ``section`` groups lines (``current_assets``, ``operating_expenses``,
  ``investing_activities``...),
- ``type`` is ``raw`` for account lines and ``total`` for derived lines,
- ``display_order`` is renumbered 10, 20, 30... in display order.

``compare_statements()`` builds the impact preview of a transaction: the
lines whose amount differs between two states, with before/after/change
columns.
"""

import math
from typing import Optional, Union

import pandas as pd

from .engine import recompute
from .ratios import RatioReport, RatioResult
from .statements import FullStatements, RawStatements
from .transactions import Transaction

STATEMENT_COLUMNS = ["display_order", "section", "name", "type", "amount"]

RATIO_COLUMNS = ["group", "key", "label", "value", "unit", "notes"]

TRANSACTION_COLUMNS = [
    "id",
    "created_at",
    "type",
    "amount",
    "payment_method",
    "cogs",
    "expense_type",
    "asset_type",
    "term",
    "principal",
    "interest",
    "affects",
    "description",
]

COMPARISON_COLUMNS = [
    "statement",
    "section",
    "name",
    "type",
    "before",
    "after",
    "change",
]

# (section, name, type, amount)
_Line = tuple[str, str, str, float]


def _raw_lines(section: str, accounts: dict[str, float]) -> list[_Line]:
    return [(section, name, "raw", float(amount)) for name, amount in accounts.items()]


def _balance_sheet_lines(full: FullStatements) -> list[_Line]:
    bs = full.balance_sheet
    t = full.balance_sheet_totals
    return [
        *_raw_lines("current_assets", bs.current_assets),
        ("current_assets", "total_current_assets", "total", t.total_current_assets),
        *_raw_lines("non_current_assets", bs.non_current_assets),
        (
            "non_current_assets",
            "total_non_current_assets",
            "total",
            t.total_non_current_assets,
        ),
        ("assets", "total_assets", "total", t.total_assets),
        *_raw_lines("current_liabilities", bs.current_liabilities),
        (
            "current_liabilities",
            "total_current_liabilities",
            "total",
            t.total_current_liabilities,
        ),
        *_raw_lines("non_current_liabilities", bs.non_current_liabilities),
        (
            "non_current_liabilities",
            "total_non_current_liabilities",
            "total",
            t.total_non_current_liabilities,
        ),
        ("liabilities", "total_liabilities", "total", t.total_liabilities),
        *_raw_lines("equity", bs.equity),
        ("equity", "total_equity", "total", t.total_equity),
    ]


def _income_statement_lines(full: FullStatements) -> list[_Line]:
    inc = full.income_statement
    t = full.income_statement_totals
    return [
        ("revenue", "revenue", "raw", inc.revenue),
        ("cost_of_goods_sold", "cost_of_goods_sold", "raw", inc.cost_of_goods_sold),
        ("gross_profit", "gross_profit", "total", t.gross_profit),
        *_raw_lines("operating_expenses", inc.operating_expenses),
        (
            "operating_expenses",
            "total_operating_expenses",
            "total",
            t.total_operating_expenses,
        ),
        ("operating_income", "operating_income", "total", t.operating_income),
        ("other_income", "other_income", "raw", inc.other_income),
        ("interest_expense", "interest_expense", "raw", inc.interest_expense),
        ("income_before_tax", "income_before_tax", "total", t.income_before_tax),
        ("tax_expense", "tax_expense", "raw", inc.tax_expense),
        ("net_income", "net_income", "total", t.net_income),
    ]


def _cash_flow_lines(full: FullStatements) -> list[_Line]:
    cfs = full.cash_flow_statement
    t = full.cash_flow_totals
    return [
        # Net income is mirrored from the income statement, hence 'total'.
        ("operating_activities", "net_income", "total", t.net_income),
        *_raw_lines("operating_activities", cfs.operating_activities),
        (
            "operating_activities",
            "total_operating_cash_flow",
            "total",
            t.total_operating_cash_flow,
        ),
        *_raw_lines("investing_activities", cfs.investing_activities),
        (
            "investing_activities",
            "total_investing_cash_flow",
            "total",
            t.total_investing_cash_flow,
        ),
        *_raw_lines("financing_activities", cfs.financing_activities),
        (
            "financing_activities",
            "total_financing_cash_flow",
            "total",
            t.total_financing_cash_flow,
        ),
        ("net_cash_flow", "net_cash_flow", "total", t.net_cash_flow),
    ]


_STATEMENT_LINES = {
    "balance_sheet": _balance_sheet_lines,
    "income_statement": _income_statement_lines,
    "cash_flow_statement": _cash_flow_lines,
}


def _as_full(statements: Union[FullStatements, RawStatements]) -> FullStatements:
    if isinstance(statements, RawStatements):
        return recompute(statements)
    return statements


def _round(value: float, decimals: Optional[int]) -> float:
    if decimals is None or not math.isfinite(value):
        return value
    return round(value, decimals)


def _lines_to_dataframe(lines: list[_Line], decimals: Optional[int]) -> pd.DataFrame:
    df = pd.DataFrame(
        [
            {"section": s, "name": n, "type": t, "amount": _round(a, decimals)}
            for s, n, t, a in lines
        ],
        columns=["section", "name", "type", "amount"],
    )
    return _finalize_view(df)


def _renumber_display_order(
    df: pd.DataFrame, start: int = 10, step: int = 10
) -> pd.DataFrame:
    """Reassign display_order to be strictly sequential: start, start+step, ...
    Preserves the current order of the lines (as it appears in df).
    """
    df = df.reset_index(drop=True)
    df["display_order"] = [start + i * step for i in range(len(df))]
    return df


def _finalize_view(df: pd.DataFrame) -> pd.DataFrame:
    """Number the rows in their current order and apply the column order."""
    df = _renumber_display_order(df)
    return df[[c for c in STATEMENT_COLUMNS if c in df.columns]]


def balance_sheet_to_dataframe(
    statements: Union[FullStatements, RawStatements],
    decimals: Optional[int] = None,
) -> pd.DataFrame:
    """
    Render the balance sheet: assets, then liabilities, then equity.

    Each section lists its accounts followed by its total line; the grand
    totals ``total_assets`` and ``total_liabilities`` close their side.
    """
    return _lines_to_dataframe(_balance_sheet_lines(_as_full(statements)), decimals)


def income_statement_to_dataframe(
    statements: Union[FullStatements, RawStatements],
    decimals: Optional[int] = None,
) -> pd.DataFrame:
    """Render the income statement from revenue down to net income."""
    return _lines_to_dataframe(
        _income_statement_lines(_as_full(statements)), decimals
    )


def cash_flow_to_dataframe(
    statements: Union[FullStatements, RawStatements],
    decimals: Optional[int] = None,
) -> pd.DataFrame:
    """Render the cash flow statement (indirect method, net income first)."""
    return _lines_to_dataframe(_cash_flow_lines(_as_full(statements)), decimals)


def ratios_to_dataframe(
    ratios: Union[RatioReport, list[RatioResult]],
    decimals: int = 2,
) -> pd.DataFrame:
    """
    Convert a ratio report into a pandas DataFrame.

    The resulting DataFrame has the following columns:
        - group: Ratio family (liquidity, profitability, solvency, efficiency).
        - key:   Internal ratio identifier (e.g. "current_ratio").
        - label: Human-readable label to display.
        - value: Numeric value rounded to ``decimals``. Infinite values are
                 kept; ratios that could not be evaluated are NaN.
        - unit:  Unit hint ("ratio", "times"...).
        - notes: Optional description or comment.

    Rows keep the report order (groups first, then file order).
    """
    results = ratios.results if isinstance(ratios, RatioReport) else ratios
    if not results:
        return pd.DataFrame(columns=RATIO_COLUMNS)

    rows: list[dict[str, object]] = []
    for r in results:
        if r.value is None:
            value = float("nan")
        else:
            value = _round(r.value, decimals)

        rows.append(
            {
                "group": r.group,
                "key": r.key,
                "label": r.label,
                "value": value,
                "unit": r.unit,
                "notes": r.notes,
            }
        )

    return pd.DataFrame(rows, columns=RATIO_COLUMNS)


def transactions_to_dataframe(transactions: list[Transaction]) -> pd.DataFrame:
    """
    One row per transaction, oldest first.

    The ``affects`` column holds the number of edits of a custom
    transaction (0 for the other kinds).
    """
    rows = []
    for tx in transactions:
        row = tx.as_dict()
        row["affects"] = len(tx.affects)
        rows.append(row)
    return pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)


def compare_statements(
    before: Union[FullStatements, RawStatements],
    after: Union[FullStatements, RawStatements],
    decimals: Optional[int] = None,
    tolerance: float = 1e-9,
) -> pd.DataFrame:
    """
    List the lines whose amount differs between ``before`` and ``after``.

    Raw statements are recomputed first, so derived totals are compared
    too. Accounts present on one side only are compared against 0.0.

    Typical use is an impact preview::

        result = state.preview(tx)
        compare_statements(state.statements, result.statements)

    Returns:
        A DataFrame with columns statement, section, name, type, before,
        after, change. Rows follow the display order of ``after``; lines
        only found in ``before`` come last.
    """
    full_before = _as_full(before)
    full_after = _as_full(after)

    rows: list[dict[str, object]] = []
    for statement, build_lines in _STATEMENT_LINES.items():
        old = {(s, n): (t, a) for s, n, t, a in build_lines(full_before)}
        new = {(s, n): (t, a) for s, n, t, a in build_lines(full_after)}
        keys = list(new) + [k for k in old if k not in new]

        for key in keys:
            line_type = (new.get(key) or old[key])[0]
            old_amount = old[key][1] if key in old else 0.0
            new_amount = new[key][1] if key in new else 0.0
            if math.isclose(old_amount, new_amount, rel_tol=0.0, abs_tol=tolerance):
                continue
            rows.append(
                {
                    "statement": statement,
                    "section": key[0],
                    "name": key[1],
                    "type": line_type,
                    "before": _round(old_amount, decimals),
                    "after": _round(new_amount, decimals),
                    "change": _round(new_amount - old_amount, decimals),
                }
            )

    return pd.DataFrame(rows, columns=COMPARISON_COLUMNS)
