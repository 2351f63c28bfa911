import pytest

from smb_statements.statements import (
    SEED_STATE,
    raw_statements_from_mapping,
    seed_statements,
    snake_case,
)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("accountsReceivable", "accounts_receivable"),
        ("balanceSheet", "balance_sheet"),
        ("cash", "cash"),
        ("short_term_debt", "short_term_debt"),
        ("short-term", "short-term"),
        ("TaxExpense", "tax_expense"),
    ],
)
def test_snake_case(name: str, expected: str) -> None:
    assert snake_case(name) == expected


def test_seed_statements_values(seed) -> None:
    bs = seed.balance_sheet
    assert bs.current_assets["cash"] == pytest.approx(50000.0)
    assert bs.non_current_assets["accumulated_depreciation"] == pytest.approx(-25000.0)
    assert bs.non_current_liabilities["long_term_debt"] == pytest.approx(100000.0)
    assert bs.equity["treasury_stock"] == pytest.approx(-15000.0)

    inc = seed.income_statement
    assert inc.revenue == pytest.approx(200000.0)
    assert inc.operating_expenses["other"] == pytest.approx(12500.0)
    assert inc.tax_expense == pytest.approx(10000.0)

    cfs = seed.cash_flow_statement
    assert "net_income" not in cfs.operating_activities
    assert cfs.financing_activities["issuance_of_stock"] == pytest.approx(0.0)


def test_seed_statements_returns_independent_copies() -> None:
    first = seed_statements()
    first.balance_sheet.current_assets["cash"] = 0.0
    first.income_statement.operating_expenses["rent"] = 0.0

    second = seed_statements()
    assert second.balance_sheet.current_assets["cash"] == pytest.approx(50000.0)
    assert second.income_statement.operating_expenses["rent"] == pytest.approx(15000.0)
    assert SEED_STATE["balance_sheet"]["assets"]["current_assets"]["cash"] == 50000.0


def test_raw_statements_copy_is_deep(seed) -> None:
    clone = seed.copy()
    clone.balance_sheet.equity["common_stock"] += 1.0
    clone.cash_flow_statement.investing_activities["sale_of_investments"] += 1.0

    assert seed.balance_sheet.equity["common_stock"] == pytest.approx(80000.0)
    assert seed.cash_flow_statement.investing_activities[
        "sale_of_investments"
    ] == pytest.approx(2000.0)


def test_raw_statements_from_camel_case_mapping_ignores_derived_fields() -> None:
    data = {
        "balanceSheet": {
            "assets": {
                "currentAssets": {"cash": 10, "accountsReceivable": "5.5"},
                "totalCurrentAssets": 999,
            },
            "totalAssets": 999,
        },
        "incomeStatement": {"revenue": 100, "grossProfit": 42},
        "cashFlowStatement": {
            "operatingActivities": {"netIncome": 7, "depreciation": 1},
        },
    }

    raw = raw_statements_from_mapping(data)

    assert raw.balance_sheet.current_assets == {
        "cash": 10.0,
        "accounts_receivable": 5.5,
    }
    assert raw.balance_sheet.non_current_assets == {}
    assert raw.income_statement.revenue == pytest.approx(100.0)
    assert raw.income_statement.cost_of_goods_sold == pytest.approx(0.0)
    assert raw.cash_flow_statement.operating_activities == {"depreciation": 1.0}


def test_raw_statements_from_mapping_rejects_non_numeric_amount() -> None:
    data = {"balance_sheet": {"equity": {"common_stock": "lots"}}}

    with pytest.raises(ValueError, match="common_stock"):
        raw_statements_from_mapping(data)


def test_raw_statements_from_mapping_rejects_non_table_section() -> None:
    with pytest.raises(ValueError):
        raw_statements_from_mapping({"balance_sheet": {"assets": 12}})
