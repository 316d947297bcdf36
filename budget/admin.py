from django.contrib import admin
from .models import (
    Category,
    ImportBatch,
    MonthlySummary,
    PendingTransaction,
    Transaction,
)


# ---------- CATEGORY ----------

@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "user")
    list_filter = ("type",)
    search_fields = ("name", "user__email")


# ---------- IMPORT BATCHES ----------

class PendingTransactionInline(admin.TabularInline):
    model = PendingTransaction
    extra = 0
    fields = ("date", "description", "type", "category", "amount", "is_duplicate", "expires_at")
    readonly_fields = ("date", "description", "type", "category", "amount", "is_duplicate", "expires_at")
    can_delete = True


class TransactionInline(admin.TabularInline):
    model = Transaction
    extra = 0
    fields = ("date", "description", "type", "category", "amount")
    readonly_fields = ("date", "description", "type", "category", "amount")
    can_delete = False


@admin.register(ImportBatch)
class ImportBatchAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "user",
        "filename",
        "imported_at",
        "earliest_date",
        "latest_date",
        "total_rows",
        "valid_rows",
        "duplicate_count",
        "error_count",
        "pending_count",
    )
    list_filter = ("imported_at",)
    search_fields = ("filename", "user__email")
    ordering = ("-imported_at",)
    inlines = [PendingTransactionInline, TransactionInline]


# ---------- TRANSACTIONS & SUMMARIES ----------

@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("date", "description", "type", "category", "amount", "user", "import_batch")
    list_filter = ("type", "date")
    search_fields = ("description", "user__email")
    ordering = ("-date", "-id")


@admin.register(PendingTransaction)
class PendingTransactionAdmin(admin.ModelAdmin):
    list_display = ("date", "description", "type", "amount", "is_duplicate", "expires_at", "user", "batch")
    list_filter = ("type", "is_duplicate")
    search_fields = ("description", "user__email")
    ordering = ("-date", "-id")


@admin.register(MonthlySummary)
class MonthlySummaryAdmin(admin.ModelAdmin):
    list_display = (
        "month_year",
        "user",
        "total_income",
        "needs_expenses",
        "wants_expenses",
        "total_savings",
        "total_investments",
        "total_expenses",
        "final_balance",
    )
    list_filter = ("month_year",)
    search_fields = ("user__email",)
    ordering = ("user", "month_year")
