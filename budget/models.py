from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


class TransactionType(models.TextChoices):
    INCOME = "INCOME", "Income"
    NEEDS = "NEEDS", "Needs"
    WANTS = "WANTS", "Wants"
    RESERVES = "RESERVES", "Reserves"
    INVESTMENTS = "INVESTMENTS", "Investments"
    ROLLOVER = "ROLLOVER", "Rollover"


class Category(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="categories",
    )
    name = models.CharField(max_length=100)
    type = models.CharField(max_length=20, choices=TransactionType.choices)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"
        constraints = [
            models.UniqueConstraint(
                fields=["user", "name", "type"],
                name="unique_category_per_user_and_type",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.type})"


class ImportBatch(models.Model):
    """
    One uploaded statement file. Rows land in PendingTransaction first and
    keep pointing at their batch once committed.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="import_batches",
    )
    filename = models.CharField(max_length=255, blank=True)
    imported_at = models.DateTimeField(auto_now_add=True)
    earliest_date = models.DateField(null=True, blank=True)
    latest_date = models.DateField(null=True, blank=True)
    total_rows = models.IntegerField(default=0)
    valid_rows = models.IntegerField(default=0)
    duplicate_count = models.IntegerField(default=0)
    error_count = models.IntegerField(default=0)

    class Meta:
        ordering = ["-imported_at"]
        verbose_name_plural = "import batches"

    def __str__(self):
        return f"Import {self.pk} – {self.filename or 'upload'} – {self.earliest_date} to {self.latest_date}"

    @property
    def pending_count(self) -> int:
        return self.pending_transactions.count()


class Transaction(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="transactions",
    )
    description = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=15, decimal_places=2)
    date = models.DateField(default=timezone.localdate)
    type = models.CharField(max_length=20, choices=TransactionType.choices)
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )
    import_batch = models.ForeignKey(
        ImportBatch,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["user", "date"], name="transaction_user_date_idx"),
        ]

    def __str__(self):
        return f"{self.date} | {self.type} | {self.description} | {self.amount}"


class MonthlySummary(models.Model):
    """
    Rolling totals for one user and one calendar month.

    final_balance = previous month's final_balance + total_income
                    - needs - wants - savings - investments
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="monthly_summaries",
    )
    month_year = models.DateField(help_text="First day of the summarised month.")
    total_income = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0.00"))
    needs_expenses = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0.00"))
    wants_expenses = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0.00"))
    total_savings = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0.00"))
    total_investments = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0.00"))
    final_balance = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["month_year"]
        verbose_name_plural = "monthly summaries"
        constraints = [
            models.UniqueConstraint(
                fields=["user", "month_year"],
                name="unique_summary_per_user_and_month",
            ),
        ]

    def __str__(self):
        return f"{self.user} – {self.month_year:%Y-%m}"

    @property
    def total_expenses(self) -> Decimal:
        return self.needs_expenses + self.wants_expenses + self.total_savings + self.total_investments


class PendingTransaction(models.Model):
    """
    An imported row waiting for review. It never affects MonthlySummary
    until it is committed into a real Transaction.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="pending_transactions",
    )
    batch = models.ForeignKey(
        ImportBatch,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="pending_transactions",
    )
    description = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=15, decimal_places=2)
    date = models.DateField()
    type = models.CharField(max_length=20, choices=TransactionType.choices)
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="pending_transactions",
    )
    expires_at = models.DateTimeField()
    is_duplicate = models.BooleanField(default=False)
    raw_data = models.JSONField(null=True, blank=True)

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["user", "expires_at"], name="pending_user_expires_idx"),
        ]

    def __str__(self):
        return f"{self.date} | {self.type} | {self.description} | {self.amount} (pending)"

    @property
    def is_expired(self) -> bool:
        return self.expires_at <= timezone.now()
