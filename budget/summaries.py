"""
Monthly and annual summaries.

Each user has at most one MonthlySummary per calendar month. A month's
final_balance starts from the previous calendar month's final_balance, so a
change in one month is carried forward through every later summary row.
"""
import logging
from calendar import monthrange
from collections import namedtuple
from datetime import date
from decimal import Decimal

from django.conf import settings
from django.db.models import Sum

from .formatters import format_currency, format_percentage
from .models import MonthlySummary, Transaction, TransactionType

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENTS = Decimal("0.01")

TypeConfig = namedtuple("TypeConfig", ["summary_field", "is_income", "affects_balance"])

TRANSACTION_TYPE_CONFIG = {
    TransactionType.INCOME: TypeConfig("total_income", True, True),
    TransactionType.NEEDS: TypeConfig("needs_expenses", False, True),
    TransactionType.WANTS: TypeConfig("wants_expenses", False, True),
    TransactionType.RESERVES: TypeConfig("total_savings", False, True),
    TransactionType.INVESTMENTS: TypeConfig("total_investments", False, True),
    TransactionType.ROLLOVER: TypeConfig(None, False, False),
}

SUMMARY_FIELDS = [
    config.summary_field
    for config in TRANSACTION_TYPE_CONFIG.values()
    if config.summary_field
]
EXPENSE_FIELDS = [
    config.summary_field
    for config in TRANSACTION_TYPE_CONFIG.values()
    if config.summary_field and not config.is_income
]


def get_type_config(transaction_type) -> TypeConfig:
    return TRANSACTION_TYPE_CONFIG[TransactionType(transaction_type)]


def affects_summary(transaction_type) -> bool:
    return get_type_config(transaction_type).summary_field is not None


def summary_field(transaction_type):
    return get_type_config(transaction_type).summary_field


def is_category_compatible(category_type, transaction_type) -> bool:
    return category_type == transaction_type


# --- month helpers ---

def month_start(d: date) -> date:
    return date(d.year, d.month, 1)


def month_end(d: date) -> date:
    return date(d.year, d.month, monthrange(d.year, d.month)[1])


def add_months(d: date, delta_months: int) -> date:
    y = d.year + (d.month - 1 + delta_months) // 12
    m = (d.month - 1 + delta_months) % 12 + 1
    return date(y, m, 1)


def previous_month_start(d: date) -> date:
    return add_months(month_start(d), -1)


# --- aggregation ---

def aggregate_by_type(user, start: date, end: date) -> dict:
    """Sum of amounts per TransactionType in [start, end]; every type present."""
    totals = {transaction_type: ZERO for transaction_type in TransactionType}
    rows = (
        Transaction.objects
        .filter(user=user, date__range=(start, end))
        .values("type")
        .annotate(total=Sum("amount"))
    )
    for row in rows:
        # SQLite sums come back unscaled (Decimal("1000"))
        totals[TransactionType(row["type"])] = (row["total"] or ZERO).quantize(CENTS)
    return totals


def previous_balance(user, d: date) -> Decimal:
    prev = (
        MonthlySummary.objects
        .filter(user=user, month_year=previous_month_start(d))
        .values_list("final_balance", flat=True)
        .first()
    )
    return prev if prev is not None else ZERO


def _balance_from(starting_balance: Decimal, summary: MonthlySummary) -> Decimal:
    total = starting_balance + summary.total_income
    for field in EXPENSE_FIELDS:
        total -= getattr(summary, field)
    return total


def carry_balance_forward(user, d: date) -> int:
    """
    Recompute final_balance of every summary after the month of ``d``,
    oldest first. Returns the number of rows that changed.
    """
    later = list(
        MonthlySummary.objects
        .filter(user=user, month_year__gt=month_start(d))
        .order_by("month_year")
    )
    if not later:
        return 0

    known = {month_start(d): previous_balance(user, add_months(month_start(d), 1))}
    changed = 0
    for summary in later:
        prev_month = previous_month_start(summary.month_year)
        if prev_month in known:
            start = known[prev_month]
        else:
            start = previous_balance(user, summary.month_year)
        balance = _balance_from(start, summary)
        if balance != summary.final_balance:
            summary.final_balance = balance
            summary.save(update_fields=["final_balance"])
            changed += 1
        known[summary.month_year] = balance
    return changed


def recalculate_monthly_summary(user, d: date) -> MonthlySummary:
    """
    Rebuild the summary for the month of ``d`` from its transactions
    (one grouped query) and the previous month's balance.
    """
    first_day = month_start(d)
    totals = aggregate_by_type(user, first_day, month_end(d))

    values = {
        config.summary_field: totals[transaction_type]
        for transaction_type, config in TRANSACTION_TYPE_CONFIG.items()
        if config.summary_field
    }
    summary = MonthlySummary(user=user, month_year=first_day, **values)
    values["final_balance"] = _balance_from(previous_balance(user, first_day), summary)

    summary, _ = MonthlySummary.objects.update_or_create(
        user=user,
        month_year=first_day,
        defaults=values,
    )
    carry_balance_forward(user, first_day)
    return summary


def apply_transaction_delta(user, d: date, transaction_type, old_amount=None, new_amount=None):
    """
    Update the month of ``d`` after a transaction of ``transaction_type``
    went from ``old_amount`` to ``new_amount`` (either may be None for
    create/delete). Call it after the Transaction row itself was saved or
    deleted, inside the same atomic block.
    """
    summary = MonthlySummary.objects.filter(user=user, month_year=month_start(d)).first()
    if summary is None:
        return recalculate_monthly_summary(user, d)

    field = summary_field(transaction_type)
    if field is None:
        return summary

    delta = ZERO
    if old_amount is not None:
        delta -= Decimal(old_amount)
    if new_amount is not None:
        delta += Decimal(new_amount)
    if delta == 0:
        return summary

    setattr(summary, field, getattr(summary, field) + delta)
    summary.final_balance = _balance_from(previous_balance(user, d), summary)
    summary.save(update_fields=[field, "final_balance"])
    carry_balance_forward(user, d)
    return summary


def record_transaction_change(user, old=None, new=None):
    """
    Keep summaries in sync with a transaction change. ``old`` and ``new``
    are (date, type, amount) tuples describing the row before and after.
    """
    if old and new and month_start(old[0]) == month_start(new[0]) and old[1] == new[1]:
        apply_transaction_delta(user, new[0], new[1], old_amount=old[2], new_amount=new[2])
        return
    if old:
        apply_transaction_delta(user, old[0], old[1], old_amount=old[2])
    if new:
        apply_transaction_delta(user, new[0], new[1], new_amount=new[2])


# --- annual rollup ---

def get_annual_summary(user, year: int) -> dict:
    summaries = list(
        MonthlySummary.objects
        .filter(user=user, month_year__range=(date(year, 1, 1), date(year, 12, 31)))
        .order_by("month_year")
    )

    totals = {
        field: sum((getattr(s, field) for s in summaries), ZERO)
        for field in SUMMARY_FIELDS
    }
    return {
        "year": year,
        "totalIncome": totals["total_income"],
        "needsExpenses": totals["needs_expenses"],
        "wantsExpenses": totals["wants_expenses"],
        "totalSavings": totals["total_savings"],
        "totalInvestments": totals["total_investments"],
        "finalBalance": summaries[-1].final_balance if summaries else ZERO,
        "months": len(summaries),
    }


# --- dashboard ---

DASHBOARD_CARDS = [
    ("income", TransactionType.INCOME),
    ("needs", TransactionType.NEEDS),
    ("wants", TransactionType.WANTS),
    ("reserves", TransactionType.RESERVES),
    ("investments", TransactionType.INVESTMENTS),
]


def _rule_percentage(transaction_type) -> Decimal:
    if transaction_type == TransactionType.INCOME:
        return Decimal("100")
    return Decimal(settings.BUDGET_RULE_PERCENTAGES[transaction_type.value])


def build_dashboard(user, d: date) -> dict:
    """
    Cards comparing what was spent per type against the budgeting rule
    applied to the month's income.
    """
    first_day = month_start(d)
    transactions = list(
        Transaction.objects
        .filter(user=user, date__range=(first_day, month_end(d)))
        .order_by("-date", "-id")
    )

    by_type = {transaction_type: [] for _, transaction_type in DASHBOARD_CARDS}
    for tx in transactions:
        if tx.type in by_type:
            by_type[tx.type].append(tx)

    base_income = sum((t.amount for t in by_type[TransactionType.INCOME]), ZERO)

    cards = {}
    totals = {}
    for key, transaction_type in DASHBOARD_CARDS:
        items = by_type[transaction_type]
        actual = sum((t.amount for t in items), ZERO)
        target_pct = _rule_percentage(transaction_type)
        max_amount = (base_income * target_pct / 100).quantize(CENTS)
        actual_pct = (actual / base_income * 100) if base_income else ZERO
        totals[key] = actual

        cards[key] = {
            "title": transaction_type.label,
            "type": transaction_type.value,
            "actualPercentage": format_percentage(actual_pct),
            "maxPercentage": f"{target_pct}%",
            "actualAmount": format_currency(actual),
            "maxAmount": format_currency(max_amount),
            "actualValue": actual,
            "maxValue": max_amount,
            "overBudget": transaction_type != TransactionType.INCOME and actual > max_amount,
            "items": [
                {"id": t.pk, "description": t.description, "amount": t.amount, "date": t.date}
                for t in items
            ],
        }

    result = totals["income"] - totals["needs"] - totals["wants"] - totals["reserves"] - totals["investments"]
    starting = previous_balance(user, first_day)

    return {
        "month": f"{first_day:%Y-%m}",
        "cards": cards,
        "financialStatement": {
            "revenue": totals["income"],
            "needs": totals["needs"],
            "wants": totals["wants"],
            "reserves": totals["reserves"],
            "investments": totals["investments"],
            "result": result,
        },
        "previousBalance": starting,
        "totalAvailable": starting + totals["income"],
    }
