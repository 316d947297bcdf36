from decimal import Decimal

from budget.formatters import format_currency, format_percentage


def test_format_currency_default_separators():
    assert format_currency(Decimal("1234.56")) == "R$1.234,56"
    assert format_currency(1234567.891) == "R$1.234.567,89"
    assert format_currency(0) == "R$0,00"
    assert format_currency("-50.5") == "-R$50,50"


def test_format_currency_invalid_renders_zero():
    assert format_currency(None) == "R$0,00"
    assert format_currency("abc") == "R$0,00"
    assert format_currency(float("nan")) == "R$0,00"


def test_format_currency_follows_settings(settings):
    settings.BUDGET_CURRENCY_SYMBOL = "$"
    settings.BUDGET_DECIMAL_SEPARATOR = "."
    settings.BUDGET_THOUSANDS_SEPARATOR = ","
    assert format_currency(Decimal("1234.5")) == "$1,234.50"


def test_format_percentage():
    assert format_percentage(Decimal("12.345")) == "12,35%"
    assert format_percentage(50) == "50,00%"
    assert format_percentage("oops") == "0,00%"
