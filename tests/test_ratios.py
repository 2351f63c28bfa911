import math

import pytest

from smb_statements.engine import recompute
from smb_statements.ratios import (
    GROUP_ORDER,
    RatioReport,
    _ieee_div,
    _safe_eval_expr,
    compute_ratios,
    compute_ratios_from_measures,
    load_ratio_rules,
)
from smb_statements.statements import (
    BalanceSheet,
    CashFlowStatement,
    IncomeStatement,
    RawStatements,
)


def test_default_rules_define_four_groups() -> None:
    rules = load_ratio_rules()

    assert list(rules) == list(GROUP_ORDER)
    assert "current_ratio" in rules["liquidity"]
    assert "formula" in rules["solvency"]["interest_coverage_ratio"]


def test_compute_ratios_for_seed(seed_full) -> None:
    report = compute_ratios(seed_full)

    assert isinstance(report, RatioReport)
    assert report.liquidity["current_ratio"] == pytest.approx(2.4)
    assert report.liquidity["quick_ratio"] == pytest.approx(1.7)
    assert report.profitability["gross_profit_margin"] == pytest.approx(0.5)
    assert report.profitability["net_profit_margin"] == pytest.approx(-0.0125)
    assert report.profitability["return_on_assets"] == pytest.approx(-2500 / 375000)
    assert report.profitability["return_on_equity"] == pytest.approx(-2500 / 165000)
    assert report.solvency["debt_to_equity_ratio"] == pytest.approx(185000 / 165000)
    assert report.solvency["debt_to_assets_ratio"] == pytest.approx(185000 / 375000)
    assert report.solvency["interest_coverage_ratio"] == pytest.approx(10000 / 7500)
    assert report.efficiency["inventory_turnover"] == pytest.approx(100000 / 30000)
    assert report.efficiency["asset_turnover"] == pytest.approx(200000 / 375000)


def test_report_as_dict_groups_results(seed_full) -> None:
    report = compute_ratios(seed_full)

    groups = report.as_dict()

    assert list(groups) == list(GROUP_ORDER)
    assert groups["liquidity"] == report.liquidity
    assert [r.group for r in report.results][:2] == ["liquidity", "liquidity"]


def test_zero_current_liabilities_gives_infinite_current_ratio(seed) -> None:
    seed.balance_sheet.current_liabilities.clear()

    report = compute_ratios(recompute(seed))

    assert report.liquidity["current_ratio"] == math.inf
    assert report.liquidity["quick_ratio"] == math.inf


def test_empty_statements_give_nan_ratios() -> None:
    raw = RawStatements(BalanceSheet(), IncomeStatement(), CashFlowStatement())

    report = compute_ratios(recompute(raw))

    assert math.isnan(report.profitability["gross_profit_margin"])
    assert math.isnan(report.liquidity["current_ratio"])


@pytest.mark.parametrize(
    "left, right, expected",
    [
        (1.0, 0.0, math.inf),
        (-1.0, 0.0, -math.inf),
        (1.0, -0.0, -math.inf),
        (6.0, 3.0, 2.0),
    ],
)
def test_ieee_div(left: float, right: float, expected: float) -> None:
    assert _ieee_div(left, right) == expected


def test_ieee_div_zero_by_zero_is_nan() -> None:
    assert math.isnan(_ieee_div(0.0, 0.0))


def test_safe_eval_expr_supports_arithmetic() -> None:
    value = _safe_eval_expr("(a + b) * 2 - -c / 4 % 3", {"a": 1, "b": 2, "c": 4})

    assert value == pytest.approx((1 + 2) * 2 - (-4 / 4 % 3))


@pytest.mark.parametrize(
    "expr",
    [
        "a ** 2",
        "unknown_measure / 2",
        "__import__('os')",
        "a if a else 1",
        "'text'",
        "a +",
    ],
)
def test_safe_eval_expr_rejects_unsupported_input(expr: str) -> None:
    with pytest.raises(ValueError):
        _safe_eval_expr(expr, {"a": 1.0})


def test_unevaluable_formula_yields_none(caplog) -> None:
    rules = {
        "liquidity": {
            "broken": {"label": "Broken", "formula": "nope / 2"},
            "empty": {"label": "No formula"},
            "fine": {"label": "Fine", "formula": "cash * 2", "unit": "amount"},
        }
    }

    with caplog.at_level("WARNING", logger="smb_statements.ratios"):
        results = compute_ratios_from_measures({"cash": 5.0}, rules)

    values = {r.key: r.value for r in results}
    assert values == {"broken": None, "empty": None, "fine": 10.0}
    assert "broken" in caplog.text
    assert results[2].unit == "amount"
    assert results[0].unit == "ratio"


def test_unknown_groups_come_after_known_ones() -> None:
    rules = {
        "custom": {"one": {"formula": "1"}},
        "solvency": {"two": {"formula": "2"}},
    }

    results = compute_ratios_from_measures({}, rules)

    assert [r.group for r in results] == ["solvency", "custom"]


def test_load_custom_rules_file(tmp_path) -> None:
    rules_file = tmp_path / "rules.toml"
    rules_file.write_text(
        "[ratios.liquidity.cash_ratio]\n"
        'label = "Cash ratio"\n'
        'formula = "cash / total_current_liabilities"\n',
        encoding="utf-8",
    )

    rules = load_ratio_rules(rules_file)

    assert list(rules) == ["liquidity"]


def test_load_rules_file_errors(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_ratio_rules(tmp_path / "missing.toml")

    no_ratios = tmp_path / "no_ratios.toml"
    no_ratios.write_text('[other]\nkey = "value"\n', encoding="utf-8")
    with pytest.raises(ValueError):
        load_ratio_rules(no_ratios)

    broken = tmp_path / "broken.toml"
    broken.write_text("[ratios\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_ratio_rules(broken)
