import math

import pytest

from smb_statements.ratios import RatioResult, compute_ratios
from smb_statements.state import FinancialState
from smb_statements.views import (
    COMPARISON_COLUMNS,
    RATIO_COLUMNS,
    STATEMENT_COLUMNS,
    balance_sheet_to_dataframe,
    cash_flow_to_dataframe,
    compare_statements,
    income_statement_to_dataframe,
    ratios_to_dataframe,
    transactions_to_dataframe,
)


def _amount(df, name: str) -> float:
    return float(df.loc[df["name"] == name, "amount"].iloc[0])


def test_balance_sheet_view(seed_full) -> None:
    df = balance_sheet_to_dataframe(seed_full)

    assert list(df.columns) == STATEMENT_COLUMNS
    assert list(df["display_order"]) == [10 * (i + 1) for i in range(len(df))]
    assert set(df["type"]) == {"raw", "total"}
    assert df.iloc[0]["name"] == "cash"
    assert df.iloc[-1]["name"] == "total_equity"
    assert _amount(df, "total_assets") == pytest.approx(375000.0)
    assert _amount(df, "total_liabilities") == pytest.approx(185000.0)


def test_income_statement_view(seed_full) -> None:
    df = income_statement_to_dataframe(seed_full)

    assert df.iloc[0]["name"] == "revenue"
    assert df.iloc[-1]["name"] == "net_income"
    assert df.iloc[-1]["type"] == "total"
    assert _amount(df, "net_income") == pytest.approx(-2500.0)
    assert _amount(df, "salaries") == pytest.approx(40000.0)


def test_cash_flow_view_accepts_raw_statements(seed) -> None:
    df = cash_flow_to_dataframe(seed)

    first = df.iloc[0]
    assert (first["section"], first["name"], first["type"]) == (
        "operating_activities",
        "net_income",
        "total",
    )
    assert _amount(df, "net_cash_flow") == pytest.approx(-31500.0)


def test_statement_view_rounds_amounts(seed) -> None:
    seed.balance_sheet.current_assets["cash"] = 1234.5678

    df = balance_sheet_to_dataframe(seed, decimals=1)

    assert _amount(df, "cash") == pytest.approx(1234.6)


def test_ratios_view(seed_full) -> None:
    df = ratios_to_dataframe(compute_ratios(seed_full), decimals=3)

    assert list(df.columns) == RATIO_COLUMNS
    assert df.iloc[0]["key"] == "current_ratio"
    assert df.iloc[0]["group"] == "liquidity"
    assert df.iloc[0]["value"] == pytest.approx(2.4)


def test_ratios_view_keeps_non_finite_values() -> None:
    ratios = [
        RatioResult("a", "A", math.inf, "ratio", "", "liquidity"),
        RatioResult("b", "B", None, "ratio", "", "liquidity"),
        RatioResult("c", "C", 1.23456, "ratio", "", "solvency"),
    ]

    df = ratios_to_dataframe(ratios, decimals=2)

    assert df.iloc[0]["value"] == math.inf
    assert math.isnan(df.iloc[1]["value"])
    assert df.iloc[2]["value"] == pytest.approx(1.23)


def test_ratios_view_empty() -> None:
    df = ratios_to_dataframe([])

    assert df.empty
    assert list(df.columns) == RATIO_COLUMNS


def test_transactions_view(state: FinancialState) -> None:
    state.record_transaction({"type": "sale", "amount": 10})
    state.record_transaction(
        {
            "type": "custom",
            "affects": [
                {"statement": "income_statement", "account": "revenue", "change": 1},
                {"statement": "incomeStatement", "account": "taxExpense", "change": 1},
            ],
        }
    )

    df = transactions_to_dataframe(list(state.transactions))

    assert list(df["id"]) == [1, 2]
    assert list(df["type"]) == ["sale", "custom"]
    assert list(df["affects"]) == [0, 2]


def test_compare_statements_lists_changed_lines_only(state: FinancialState) -> None:
    result = state.preview({"type": "sale", "amount": 1000, "paymentMethod": "cash"})

    df = compare_statements(state.statements, result.statements)

    assert list(df.columns) == COMPARISON_COLUMNS
    cash = df[df["name"] == "cash"].iloc[0]
    assert cash["statement"] == "balance_sheet"
    assert cash["type"] == "raw"
    assert cash["before"] == pytest.approx(50000.0)
    assert cash["after"] == pytest.approx(51000.0)
    assert cash["change"] == pytest.approx(1000.0)

    names = set(df["name"])
    assert {"revenue", "net_income", "total_assets", "net_cash_flow"} <= names
    assert "inventory" not in names
    assert "total_liabilities" not in names


def test_compare_statements_new_account_is_compared_against_zero(seed) -> None:
    after = seed.copy()
    after.balance_sheet.current_assets["crypto"] = 10.0

    df = compare_statements(seed, after)

    crypto = df[df["name"] == "crypto"].iloc[0]
    assert crypto["before"] == pytest.approx(0.0)
    assert crypto["after"] == pytest.approx(10.0)


def test_compare_identical_statements_is_empty(seed_full) -> None:
    df = compare_statements(seed_full, seed_full)

    assert df.empty
    assert list(df.columns) == COMPARISON_COLUMNS
