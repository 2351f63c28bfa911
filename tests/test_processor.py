import pytest

from smb_statements.engine import recompute
from smb_statements.errors import (
    MalformedTransaction,
    UnknownCustomTarget,
    UnknownTransactionKind,
)
from smb_statements.processor import apply_transaction, loan_payment_split
from smb_statements.transactions import CustomEdit, Transaction


def _apply(seed, **fields):
    result = apply_transaction(seed, Transaction(**fields))
    assert result.ok, result.error
    return result.statements


def _balance_gap(raw) -> float:
    totals = recompute(raw).balance_sheet_totals
    return totals.total_assets - (totals.total_liabilities + totals.total_equity)


def test_apply_transaction_does_not_mutate_input(seed) -> None:
    before = seed.copy()

    apply_transaction(seed, Transaction(kind="sale", amount=1000.0))

    assert seed == before


def test_cash_sale_with_cogs(seed) -> None:
    s = _apply(seed, kind="sale", amount=1000.0, payment_method="cash", cogs=400.0)

    assert s.income_statement.revenue == pytest.approx(201000.0)
    assert s.balance_sheet.current_assets["cash"] == pytest.approx(51000.0)
    assert s.cash_flow_statement.operating_activities[
        "other_operating_adjustments"
    ] == pytest.approx(2000.0)
    assert s.income_statement.cost_of_goods_sold == pytest.approx(100400.0)
    assert s.balance_sheet.current_assets["inventory"] == pytest.approx(29600.0)


def test_credit_sale(seed) -> None:
    s = _apply(seed, kind="sale", amount=1000.0, payment_method="credit")

    assert s.balance_sheet.current_assets["accounts_receivable"] == pytest.approx(
        26000.0
    )
    assert s.cash_flow_statement.operating_activities[
        "change_in_accounts_receivable"
    ] == pytest.approx(-4000.0)
    assert s.balance_sheet.current_assets["cash"] == pytest.approx(50000.0)
    assert s.income_statement.cost_of_goods_sold == pytest.approx(100000.0)


def test_credit_purchase(seed) -> None:
    s = _apply(seed, kind="purchase", amount=500.0, payment_method="credit")

    assert s.balance_sheet.current_assets["inventory"] == pytest.approx(30500.0)
    assert s.balance_sheet.current_liabilities["accounts_payable"] == pytest.approx(
        20500.0
    )
    assert s.cash_flow_statement.operating_activities[
        "change_in_accounts_payable"
    ] == pytest.approx(2500.0)


def test_cash_purchase(seed) -> None:
    s = _apply(seed, kind="purchase", amount=500.0, payment_method="cash")

    assert s.balance_sheet.current_assets["cash"] == pytest.approx(49500.0)
    assert s.cash_flow_statement.operating_activities[
        "other_operating_adjustments"
    ] == pytest.approx(500.0)
    assert s.balance_sheet.current_liabilities["accounts_payable"] == pytest.approx(
        20000.0
    )


def test_expense_known_category_paid_cash(seed) -> None:
    s = _apply(
        seed,
        kind="expense",
        amount=300.0,
        expense_type="marketing",
        payment_method="cash",
    )

    assert s.income_statement.operating_expenses["marketing"] == pytest.approx(
        10300.0
    )
    assert s.balance_sheet.current_assets["cash"] == pytest.approx(49700.0)


def test_expense_unknown_category_falls_into_other(seed) -> None:
    s = _apply(seed, kind="expense", amount=300.0, expense_type="travel")

    assert "travel" not in s.income_statement.operating_expenses
    assert s.income_statement.operating_expenses["other"] == pytest.approx(12800.0)
    assert s.balance_sheet.current_liabilities["accounts_payable"] == pytest.approx(
        20300.0
    )


@pytest.mark.parametrize(
    "asset_type, account, investing_line, account_after, investing_after",
    [
        ("equipment", "equipment", "purchase_of_equipment", 85000.0, -25000.0),
        ("property", "property", "purchase_of_equipment", 160000.0, -25000.0),
        (
            "investment",
            "long_term_investments",
            "purchase_of_investments",
            50000.0,
            -15000.0,
        ),
    ],
)
def test_asset_purchase(
    seed, asset_type, account, investing_line, account_after, investing_after
) -> None:
    s = _apply(seed, kind="asset-purchase", amount=10000.0, asset_type=asset_type)

    assert s.balance_sheet.non_current_assets[account] == pytest.approx(account_after)
    assert s.cash_flow_statement.investing_activities[
        investing_line
    ] == pytest.approx(investing_after)
    assert s.balance_sheet.current_assets["cash"] == pytest.approx(40000.0)


def test_asset_purchase_with_invalid_asset_type_fails(seed) -> None:
    result = apply_transaction(
        seed, Transaction(kind="asset-purchase", amount=10.0, asset_type="boat")
    )

    assert not result.ok
    assert isinstance(result.error, MalformedTransaction)
    assert result.statements is None


@pytest.mark.parametrize(
    "term, section, account, after",
    [
        ("short-term", "current_liabilities", "short_term_debt", 30000.0),
        ("long-term", "non_current_liabilities", "long_term_debt", 120000.0),
    ],
)
def test_loan(seed, term, section, account, after) -> None:
    s = _apply(seed, kind="loan", amount=20000.0, term=term)

    assert s.balance_sheet.current_assets["cash"] == pytest.approx(70000.0)
    assert getattr(s.balance_sheet, section)[account] == pytest.approx(after)
    # Loan proceeds are booked into debt_repayment with a positive sign.
    assert s.cash_flow_statement.financing_activities[
        "debt_repayment"
    ] == pytest.approx(10000.0)


def test_loan_payment_with_default_split(seed) -> None:
    s = _apply(seed, kind="loan-payment", amount=1000.0, term="long-term")

    assert s.balance_sheet.current_assets["cash"] == pytest.approx(49000.0)
    assert s.balance_sheet.non_current_liabilities["long_term_debt"] == pytest.approx(
        99200.0
    )
    assert s.income_statement.interest_expense == pytest.approx(7700.0)
    assert s.cash_flow_statement.financing_activities[
        "debt_repayment"
    ] == pytest.approx(-10800.0)


def test_loan_payment_with_explicit_split(seed) -> None:
    s = _apply(
        seed,
        kind="loan-payment",
        amount=1000.0,
        term="short-term",
        principal=600.0,
        interest=0.0,
    )

    assert s.balance_sheet.current_assets["cash"] == pytest.approx(49000.0)
    assert s.balance_sheet.current_liabilities["short_term_debt"] == pytest.approx(
        9400.0
    )
    assert s.income_statement.interest_expense == pytest.approx(7500.0)
    assert s.cash_flow_statement.financing_activities[
        "debt_repayment"
    ] == pytest.approx(-10600.0)


def test_loan_payment_uses_given_principal_share(seed) -> None:
    tx = Transaction(kind="loan-payment", amount=1000.0, term="long-term")

    result = apply_transaction(seed, tx, principal_share=0.5)

    s = result.statements
    assert s.balance_sheet.non_current_liabilities["long_term_debt"] == pytest.approx(
        99500.0
    )
    assert s.income_statement.interest_expense == pytest.approx(8000.0)


def test_loan_payment_split() -> None:
    tx = Transaction(kind="loan-payment", amount=1000.0, interest=50.0)

    principal, interest = loan_payment_split(tx)

    assert principal == pytest.approx(800.0)
    assert interest == pytest.approx(50.0)


def test_equity_investment(seed) -> None:
    s = _apply(seed, kind="equity-investment", amount=10000.0)

    assert s.balance_sheet.current_assets["cash"] == pytest.approx(60000.0)
    assert s.balance_sheet.equity["common_stock"] == pytest.approx(90000.0)
    assert s.cash_flow_statement.financing_activities[
        "issuance_of_stock"
    ] == pytest.approx(10000.0)


def test_dividend(seed) -> None:
    s = _apply(seed, kind="dividend", amount=2000.0)

    assert s.balance_sheet.current_assets["cash"] == pytest.approx(48000.0)
    assert s.balance_sheet.equity["retained_earnings"] == pytest.approx(58000.0)
    assert s.cash_flow_statement.financing_activities[
        "dividends_paid"
    ] == pytest.approx(-7000.0)


def test_depreciation(seed) -> None:
    s = _apply(seed, kind="depreciation", amount=1500.0)

    assert s.income_statement.operating_expenses["depreciation"] == pytest.approx(
        9000.0
    )
    assert s.balance_sheet.non_current_assets[
        "accumulated_depreciation"
    ] == pytest.approx(-26500.0)
    assert s.cash_flow_statement.operating_activities[
        "depreciation"
    ] == pytest.approx(9000.0)


def test_custom_edits_are_applied_in_order(seed) -> None:
    tx = Transaction(
        kind="custom",
        affects=(
            CustomEdit("balance_sheet", "assets", "cash", -250.0),
            CustomEdit("balance_sheet", "equity", "common_stock", 250.0),
            CustomEdit("balance_sheet", "liabilities", "pension_liabilities", 10.0),
            CustomEdit("income_statement", "revenue", None, 100.0),
            CustomEdit("income_statement", "operating_expenses", "travel", 40.0),
            CustomEdit(
                "cash_flow_statement",
                "investing_activities",
                "sale_of_investments",
                5.0,
            ),
        ),
    )

    result = apply_transaction(seed, tx)

    assert result.ok
    assert result.dropped_edits == ()
    s = result.statements
    assert s.balance_sheet.current_assets["cash"] == pytest.approx(49750.0)
    assert s.balance_sheet.equity["common_stock"] == pytest.approx(80250.0)
    assert s.balance_sheet.non_current_liabilities[
        "pension_liabilities"
    ] == pytest.approx(20010.0)
    assert s.income_statement.revenue == pytest.approx(200100.0)
    assert s.income_statement.operating_expenses["other"] == pytest.approx(12540.0)
    assert s.cash_flow_statement.investing_activities[
        "sale_of_investments"
    ] == pytest.approx(2005.0)


def test_unroutable_custom_edits_are_reported_and_skipped(seed) -> None:
    tx = Transaction(
        kind="custom",
        affects=(
            CustomEdit("balance_sheet", "assets", "spaceship", 1.0),
            CustomEdit(
                "cash_flow_statement", "operating_activities", "net_income", 1.0
            ),
            CustomEdit("balance_sheet", "assets", "cash", 100.0),
            CustomEdit("notes", "anything", None, 1.0),
        ),
    )

    result = apply_transaction(seed, tx)

    assert result.ok
    assert [edit.sub_account for edit, _ in result.dropped_edits] == [
        "spaceship",
        "net_income",
        None,
    ]
    assert all(
        isinstance(error, UnknownCustomTarget) for _, error in result.dropped_edits
    )
    s = result.statements
    assert "spaceship" not in s.balance_sheet.current_assets
    assert "net_income" not in s.cash_flow_statement.operating_activities
    assert s.balance_sheet.current_assets["cash"] == pytest.approx(50100.0)


def test_unknown_kind_fails_without_statements(seed) -> None:
    result = apply_transaction(seed, Transaction(kind="foo", amount=1.0))

    assert not result.ok
    assert result.statements is None
    assert isinstance(result.error, UnknownTransactionKind)
    with pytest.raises(UnknownTransactionKind):
        result.raise_for_error()


def test_loan_preserves_balance_gap(seed) -> None:
    s = _apply(seed, kind="loan", amount=20000.0, term="short-term")

    assert _balance_gap(s) == pytest.approx(_balance_gap(seed))


def test_credit_expense_shifts_balance_gap(seed) -> None:
    s = _apply(seed, kind="expense", amount=300.0, expense_type="rent")

    assert _balance_gap(s) == pytest.approx(_balance_gap(seed) - 300.0)


def test_short_term_loan_payment_with_estimated_split(seed) -> None:
    s = _apply(seed, kind="loan-payment", amount=1000.0, term="short-term")

    assert s.balance_sheet.current_liabilities["short_term_debt"] == pytest.approx(
        9200.0
    )
    assert s.income_statement.interest_expense == pytest.approx(7700.0)
    assert s.balance_sheet.current_assets["cash"] == pytest.approx(49000.0)


@pytest.mark.parametrize(
    "fields",
    [
        {"kind": "purchase", "amount": 2000.0, "payment_method": "credit"},
        {"kind": "depreciation", "amount": 500.0},
        {"kind": "sale", "amount": 1000.0, "payment_method": "credit"},
    ],
)
def test_non_cash_transactions_leave_cash_unchanged(seed, fields) -> None:
    s = _apply(seed, **fields)

    assert s.balance_sheet.current_assets["cash"] == pytest.approx(50000.0)
