from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from budget.models import Category, Transaction, TransactionType
from budget.summaries import recalculate_monthly_summary

DEMO_EMAIL = "test@example.com"
DEMO_USERNAME = "testuser"
DEMO_PASSWORD = "password123"

DEMO_CATEGORIES = [
    ("Salary", TransactionType.INCOME),
    ("Freelance", TransactionType.INCOME),
    ("Groceries", TransactionType.NEEDS),
    ("Rent", TransactionType.NEEDS),
    ("Entertainment", TransactionType.WANTS),
    ("Emergency Fund", TransactionType.RESERVES),
    ("Stocks", TransactionType.INVESTMENTS),
]

# (day of month, description, category, type, amount)
DEMO_TRANSACTIONS = [
    (1, "Monthly Salary", "Salary", TransactionType.INCOME, "5000.00"),
    (1, "Rent Payment", "Rent", TransactionType.NEEDS, "1500.00"),
    (5, "Grocery Shopping", "Groceries", TransactionType.NEEDS, "300.00"),
    (10, "Movie Night", "Entertainment", TransactionType.WANTS, "50.00"),
    (15, "Emergency Fund Deposit", "Emergency Fund", TransactionType.RESERVES, "500.00"),
]


class Command(BaseCommand):
    help = "Create a demo user with categories and this month's transactions"

    @transaction.atomic
    def handle(self, *args, **options):
        User = get_user_model()
        user, created = User.objects.get_or_create(
            email=DEMO_EMAIL,
            defaults={"username": DEMO_USERNAME},
        )
        if created:
            user.set_password(DEMO_PASSWORD)
            user.save()
            self.stdout.write(f"Created user {DEMO_EMAIL}")
        else:
            self.stdout.write(f"User {DEMO_EMAIL} already exists")

        categories = {}
        for name, category_type in DEMO_CATEGORIES:
            categories[name], _ = Category.objects.get_or_create(user=user, name=name, type=category_type)
        self.stdout.write(f"Ensured {len(categories)} categories")

        today = timezone.localdate()
        created_count = 0
        for day, description, category_name, entry_type, amount in DEMO_TRANSACTIONS:
            category = categories.get(category_name)
            if category is None:
                self.stderr.write(f"Category not found: '{category_name}'")
                continue

            _, was_created = Transaction.objects.get_or_create(
                user=user,
                description=description,
                date=today.replace(day=day),
                type=entry_type,
                amount=Decimal(amount),
                defaults={"category": category},
            )
            created_count += was_created

        summary = recalculate_monthly_summary(user, today)

        self.stdout.write(f"Created {created_count} transactions")
        self.stdout.write(self.style.SUCCESS(
            f"Demo data ready. {summary.month_year:%Y-%m} balance: {summary.final_balance}"
        ))
