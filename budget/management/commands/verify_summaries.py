from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from budget.models import MonthlySummary, Transaction
from budget.summaries import (
    EXPENSE_FIELDS,
    TRANSACTION_TYPE_CONFIG,
    aggregate_by_type,
    month_end,
    previous_month_start,
    recalculate_monthly_summary,
)

TOLERANCE = Decimal("0.01")


class Command(BaseCommand):
    help = "Recompute monthly summaries from transactions and report rows that drifted"

    def add_arguments(self, parser):
        parser.add_argument(
            "--fix",
            action="store_true",
            help="Recalculate every summary that does not match its transactions.",
        )

    def handle(self, *args, **options):
        fix = options["fix"]
        checked = 0
        problems = 0

        for user in get_user_model().objects.order_by("pk"):
            stored = {s.month_year: s for s in MonthlySummary.objects.filter(user=user)}
            tx_months = set(Transaction.objects.filter(user=user).dates("date", "month"))

            to_fix = []
            expected_balances = {}
            for month in sorted(set(stored) | tx_months):
                summary = stored.get(month)
                expected = self._expected(user, month, expected_balances)
                expected_balances[month] = expected["final_balance"]
                if summary is None:
                    problems += 1
                    to_fix.append(month)
                    self.stderr.write(f"user {user.pk} {month:%Y-%m}: summary missing")
                    continue

                checked += 1
                diffs = [
                    f"{field} stored {getattr(summary, field)} expected {value}"
                    for field, value in expected.items()
                    if abs(getattr(summary, field) - value) > TOLERANCE
                ]
                if diffs:
                    problems += 1
                    to_fix.append(month)
                    self.stderr.write(f"user {user.pk} {month:%Y-%m}: " + "; ".join(diffs))

            if fix:
                with transaction.atomic():
                    for month in sorted(to_fix):
                        recalculate_monthly_summary(user, month)

        if problems == 0:
            self.stdout.write(self.style.SUCCESS(f"All {checked} monthly summaries match their transactions."))
        elif fix:
            self.stdout.write(self.style.SUCCESS(f"Fixed {problems} monthly summary problem(s)."))
        else:
            self.stdout.write(self.style.WARNING(
                f"Found {problems} monthly summary problem(s). Run with --fix to recalculate them."
            ))

    def _expected(self, user, month, expected_balances):
        totals = aggregate_by_type(user, month, month_end(month))
        expected = {
            config.summary_field: totals[transaction_type]
            for transaction_type, config in TRANSACTION_TYPE_CONFIG.items()
            if config.summary_field
        }
        balance = expected_balances.get(previous_month_start(month), Decimal("0.00"))
        balance += expected["total_income"]
        for field in EXPENSE_FIELDS:
            balance -= expected[field]
        expected["final_balance"] = balance
        return expected
