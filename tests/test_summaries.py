from datetime import date
from decimal import Decimal

import pytest

from budget.models import MonthlySummary, TransactionType
from budget.summaries import (
    add_months,
    affects_summary,
    aggregate_by_type,
    apply_transaction_delta,
    build_dashboard,
    get_annual_summary,
    get_type_config,
    month_end,
    previous_month_start,
    recalculate_monthly_summary,
    record_transaction_change,
    summary_field,
)

pytestmark = pytest.mark.django_db

MARCH = date(2024, 3, 1)


def _summary(user, month):
    return MonthlySummary.objects.get(user=user, month_year=month)


def test_type_config_table():
    assert summary_field(TransactionType.INCOME) == "total_income"
    assert summary_field("RESERVES") == "total_savings"
    assert summary_field(TransactionType.INVESTMENTS) == "total_investments"
    assert get_type_config(TransactionType.INCOME).is_income is True
    assert affects_summary(TransactionType.ROLLOVER) is False
    assert get_type_config("ROLLOVER").affects_balance is False


def test_month_helpers():
    assert month_end(date(2024, 2, 10)) == date(2024, 2, 29)
    assert previous_month_start(date(2024, 1, 15)) == date(2023, 12, 1)
    assert add_months(date(2024, 11, 1), 3) == date(2025, 2, 1)


def test_aggregate_by_type(user, other_user, make_transaction):
    make_transaction("100.00", TransactionType.INCOME)
    make_transaction("40.00", TransactionType.INCOME)
    make_transaction("25.50", TransactionType.WANTS)
    make_transaction("999.00", TransactionType.WANTS, on=date(2024, 4, 1))
    make_transaction("999.00", TransactionType.WANTS, owner=other_user)

    totals = aggregate_by_type(user, MARCH, month_end(MARCH))

    assert totals[TransactionType.INCOME] == Decimal("140.00")
    assert totals[TransactionType.WANTS] == Decimal("25.50")
    assert totals[TransactionType.NEEDS] == Decimal("0.00")


def test_recalculate_uses_previous_month_balance(user, make_transaction):
    MonthlySummary.objects.create(user=user, month_year=date(2024, 2, 1), final_balance=Decimal("200.00"))
    make_transaction("1000.00", TransactionType.INCOME)
    make_transaction("300.00", TransactionType.NEEDS)
    make_transaction("100.00", TransactionType.WANTS)
    make_transaction("50.00", TransactionType.RESERVES)
    make_transaction("25.00", TransactionType.INVESTMENTS)
    make_transaction("5000.00", TransactionType.ROLLOVER)

    summary = recalculate_monthly_summary(user, date(2024, 3, 20))

    assert summary.month_year == MARCH
    assert summary.total_income == Decimal("1000.00")
    assert summary.needs_expenses == Decimal("300.00")
    assert summary.wants_expenses == Decimal("100.00")
    assert summary.total_savings == Decimal("50.00")
    assert summary.total_investments == Decimal("25.00")
    assert summary.final_balance == Decimal("725.00")


def test_recalculate_without_previous_month_starts_at_zero(user, make_transaction):
    make_transaction("80.00", TransactionType.NEEDS)
    assert recalculate_monthly_summary(user, MARCH).final_balance == Decimal("-80.00")


def test_recalculate_is_an_upsert(user, make_transaction):
    recalculate_monthly_summary(user, MARCH)
    make_transaction("10.00", TransactionType.INCOME)
    recalculate_monthly_summary(user, MARCH)
    assert MonthlySummary.objects.filter(user=user).count() == 1
    assert _summary(user, MARCH).total_income == Decimal("10.00")


def test_apply_delta_without_row_recalculates(user, make_transaction):
    make_transaction("60.00", TransactionType.INCOME)
    apply_transaction_delta(user, MARCH, TransactionType.INCOME, new_amount=Decimal("60.00"))
    assert _summary(user, MARCH).total_income == Decimal("60.00")


def test_apply_delta_adjusts_one_field(user, make_transaction):
    make_transaction("100.00", TransactionType.INCOME)
    recalculate_monthly_summary(user, MARCH)

    apply_transaction_delta(user, MARCH, TransactionType.WANTS, new_amount=Decimal("30.00"))
    summary = _summary(user, MARCH)
    assert summary.wants_expenses == Decimal("30.00")
    assert summary.final_balance == Decimal("70.00")

    apply_transaction_delta(
        user, MARCH, TransactionType.WANTS, old_amount=Decimal("30.00"), new_amount=Decimal("10.00")
    )
    summary = _summary(user, MARCH)
    assert summary.wants_expenses == Decimal("10.00")
    assert summary.final_balance == Decimal("90.00")


def test_apply_delta_ignores_rollover_and_zero(user, make_transaction):
    make_transaction("100.00", TransactionType.INCOME)
    recalculate_monthly_summary(user, MARCH)

    summary = apply_transaction_delta(user, MARCH, TransactionType.ROLLOVER, new_amount=Decimal("5.00"))
    assert summary.final_balance == Decimal("100.00")
    apply_transaction_delta(
        user, MARCH, TransactionType.NEEDS, old_amount=Decimal("5.00"), new_amount=Decimal("5.00")
    )
    summary = _summary(user, MARCH)
    assert summary.needs_expenses == Decimal("0.00")
    assert summary.final_balance == Decimal("100.00")


def test_rollover_without_row_still_builds_the_month(user, make_transaction):
    make_transaction("70.00", TransactionType.INCOME)
    make_transaction("5.00", TransactionType.ROLLOVER)

    summary = apply_transaction_delta(user, MARCH, TransactionType.ROLLOVER, new_amount=Decimal("5.00"))

    assert summary.pk == _summary(user, MARCH).pk
    assert summary.total_income == Decimal("70.00")
    assert summary.final_balance == Decimal("70.00")


def test_recalculated_totals_keep_two_places(user, make_transaction):
    make_transaction("1000", TransactionType.INCOME)
    make_transaction("50", TransactionType.NEEDS)

    summary = recalculate_monthly_summary(user, MARCH)

    assert str(summary.total_income) == "1000.00"
    assert str(summary.needs_expenses) == "50.00"
    assert str(summary.final_balance) == "950.00"


def test_changes_carry_into_later_months(user, make_transaction):
    make_transaction("100.00", TransactionType.INCOME, on=date(2024, 3, 5))
    make_transaction("40.00", TransactionType.NEEDS, on=date(2024, 4, 5))
    make_transaction("10.00", TransactionType.WANTS, on=date(2024, 5, 5))
    for month in (3, 4, 5):
        recalculate_monthly_summary(user, date(2024, month, 1))
    assert _summary(user, date(2024, 5, 1)).final_balance == Decimal("50.00")

    make_transaction("20.00", TransactionType.INCOME, on=date(2024, 3, 6))
    apply_transaction_delta(user, MARCH, TransactionType.INCOME, new_amount=Decimal("20.00"))

    assert _summary(user, date(2024, 3, 1)).final_balance == Decimal("120.00")
    assert _summary(user, date(2024, 4, 1)).final_balance == Decimal("80.00")
    assert _summary(user, date(2024, 5, 1)).final_balance == Decimal("70.00")


def test_record_change_moving_between_months(user, make_transaction):
    tx = make_transaction("50.00", TransactionType.NEEDS, on=date(2024, 3, 5))
    recalculate_monthly_summary(user, MARCH)
    recalculate_monthly_summary(user, date(2024, 4, 1))

    old = (tx.date, tx.type, tx.amount)
    tx.date = date(2024, 4, 2)
    tx.type = TransactionType.WANTS
    tx.save()
    record_transaction_change(user, old=old, new=(tx.date, tx.type, tx.amount))

    march = _summary(user, MARCH)
    april = _summary(user, date(2024, 4, 1))
    assert march.needs_expenses == Decimal("0.00")
    assert march.final_balance == Decimal("0.00")
    assert april.wants_expenses == Decimal("50.00")
    assert april.final_balance == Decimal("-50.00")


def test_record_change_on_delete(user, make_transaction):
    tx = make_transaction("50.00", TransactionType.INCOME)
    recalculate_monthly_summary(user, MARCH)
    old = (tx.date, tx.type, tx.amount)
    tx.delete()
    record_transaction_change(user, old=old)
    assert _summary(user, MARCH).total_income == Decimal("0.00")


def test_annual_summary(user, make_transaction):
    make_transaction("1000.00", TransactionType.INCOME, on=date(2024, 1, 10))
    make_transaction("200.00", TransactionType.NEEDS, on=date(2024, 1, 11))
    make_transaction("500.00", TransactionType.INCOME, on=date(2024, 6, 10))
    make_transaction("100.00", TransactionType.INVESTMENTS, on=date(2024, 6, 11))
    make_transaction("999.00", TransactionType.INCOME, on=date(2023, 12, 10))
    for d in (date(2023, 12, 1), date(2024, 1, 1), date(2024, 6, 1)):
        recalculate_monthly_summary(user, d)

    annual = get_annual_summary(user, 2024)

    assert annual["totalIncome"] == Decimal("1500.00")
    assert annual["needsExpenses"] == Decimal("200.00")
    assert annual["totalInvestments"] == Decimal("100.00")
    # June has no May row before it, so its balance starts from zero
    assert annual["finalBalance"] == Decimal("400.00")
    assert annual["months"] == 2


def test_annual_summary_empty_year(user):
    annual = get_annual_summary(user, 2030)
    assert annual["totalIncome"] == Decimal("0.00")
    assert annual["finalBalance"] == Decimal("0.00")
    assert annual["months"] == 0


def test_dashboard_cards(user, make_transaction):
    MonthlySummary.objects.create(user=user, month_year=date(2024, 2, 1), final_balance=Decimal("150.00"))
    make_transaction("2000.00", TransactionType.INCOME, description="Salary")
    make_transaction("1200.00", TransactionType.NEEDS, description="Rent")
    make_transaction("100.00", TransactionType.WANTS, description="Cinema")

    dashboard = build_dashboard(user, date(2024, 3, 18))

    assert dashboard["month"] == "2024-03"
    needs = dashboard["cards"]["needs"]
    assert needs["maxValue"] == Decimal("1000.00")
    assert needs["actualValue"] == Decimal("1200.00")
    assert needs["actualPercentage"] == "60,00%"
    assert needs["maxPercentage"] == "50%"
    assert needs["actualAmount"] == "R$1.200,00"
    assert needs["overBudget"] is True
    assert [item["description"] for item in needs["items"]] == ["Rent"]

    assert dashboard["cards"]["income"]["maxPercentage"] == "100%"
    assert dashboard["cards"]["wants"]["overBudget"] is False
    assert dashboard["financialStatement"]["result"] == Decimal("700.00")
    assert dashboard["previousBalance"] == Decimal("150.00")


def test_dashboard_without_income(user, make_transaction):
    make_transaction("10.00", TransactionType.WANTS)
    dashboard = build_dashboard(user, MARCH)
    assert dashboard["cards"]["wants"]["actualPercentage"] == "0,00%"
    assert dashboard["cards"]["wants"]["maxValue"] == Decimal("0.00")


def test_dashboard_uses_configured_rule(settings, user, make_transaction):
    settings.BUDGET_RULE_PERCENTAGES = {"NEEDS": 60, "WANTS": 20, "RESERVES": 10, "INVESTMENTS": 10}
    make_transaction("1000.00", TransactionType.INCOME)
    assert build_dashboard(user, MARCH)["cards"]["needs"]["maxValue"] == Decimal("600.00")
