"""
Response serializers. Request bodies are still validated by the Django forms
in forms.py; these only shape what the API sends back.
"""
from decimal import ROUND_HALF_UP

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Category, MonthlySummary, PendingTransaction, Transaction


class MoneyField(serializers.DecimalField):
    """Read-only amount rendered as a string with two decimal places."""

    def __init__(self, **kwargs):
        kwargs.setdefault("max_digits", None)
        kwargs.setdefault("decimal_places", 2)
        kwargs.setdefault("rounding", ROUND_HALF_UP)
        kwargs.setdefault("read_only", True)
        super().__init__(**kwargs)


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = get_user_model()
        fields = ["id", "username", "email"]


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name", "type"]


class TransactionSerializer(serializers.ModelSerializer):
    amount = MoneyField()
    categoryId = serializers.IntegerField(source="category_id", read_only=True)
    importBatchId = serializers.IntegerField(source="import_batch_id", read_only=True)

    class Meta:
        model = Transaction
        fields = ["id", "description", "amount", "date", "type", "categoryId", "importBatchId"]


class PendingTransactionSerializer(serializers.ModelSerializer):
    amount = MoneyField()
    categoryId = serializers.IntegerField(source="category_id", read_only=True)
    category = CategorySerializer(read_only=True)
    batchId = serializers.IntegerField(source="batch_id", read_only=True)
    expiresAt = serializers.DateTimeField(source="expires_at", read_only=True)
    isDuplicate = serializers.BooleanField(source="is_duplicate", read_only=True)
    rawData = serializers.JSONField(source="raw_data", read_only=True)

    class Meta:
        model = PendingTransaction
        fields = [
            "id",
            "description",
            "amount",
            "date",
            "type",
            "categoryId",
            "category",
            "batchId",
            "expiresAt",
            "isDuplicate",
            "rawData",
        ]


class MonthlySummarySerializer(serializers.ModelSerializer):
    monthYear = serializers.DateField(source="month_year", read_only=True)
    totalIncome = MoneyField(source="total_income")
    needsExpenses = MoneyField(source="needs_expenses")
    wantsExpenses = MoneyField(source="wants_expenses")
    totalSavings = MoneyField(source="total_savings")
    totalInvestments = MoneyField(source="total_investments")
    finalBalance = MoneyField(source="final_balance")

    class Meta:
        model = MonthlySummary
        fields = [
            "id",
            "monthYear",
            "totalIncome",
            "needsExpenses",
            "wantsExpenses",
            "totalSavings",
            "totalInvestments",
            "finalBalance",
        ]


class AnnualSummarySerializer(serializers.Serializer):
    year = serializers.IntegerField()
    totalIncome = MoneyField()
    needsExpenses = MoneyField()
    wantsExpenses = MoneyField()
    totalSavings = MoneyField()
    totalInvestments = MoneyField()
    finalBalance = MoneyField()
    months = serializers.IntegerField()


# ---------- dashboard ----------

class CardItemSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    description = serializers.CharField()
    amount = MoneyField()
    date = serializers.DateField()


class BudgetCardSerializer(serializers.Serializer):
    title = serializers.CharField()
    type = serializers.CharField()
    actualPercentage = serializers.CharField()
    maxPercentage = serializers.CharField()
    actualAmount = serializers.CharField()
    maxAmount = serializers.CharField()
    actualValue = MoneyField()
    maxValue = MoneyField()
    overBudget = serializers.BooleanField()
    items = CardItemSerializer(many=True)


class FinancialStatementSerializer(serializers.Serializer):
    revenue = MoneyField()
    needs = MoneyField()
    wants = MoneyField()
    reserves = MoneyField()
    investments = MoneyField()
    result = MoneyField()


class DashboardSerializer(serializers.Serializer):
    month = serializers.CharField()
    cards = serializers.DictField(child=BudgetCardSerializer())
    financialStatement = FinancialStatementSerializer()
    previousBalance = MoneyField()
    totalAvailable = MoneyField()
