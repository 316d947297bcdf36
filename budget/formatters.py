from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings


def _to_decimal(value):
    try:
        val = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return Decimal("0")
    if not val.is_finite():
        return Decimal("0")
    return val


def _group(text, thousands_separator, decimal_separator):
    # "1,234.56" -> "1.234,56" style without going through the locale module
    whole, _, cents = text.partition(".")
    whole = whole.replace(",", thousands_separator)
    return f"{whole}{decimal_separator}{cents}" if cents else whole


def format_currency(value):
    """
    Format any numeric value with the configured symbol and separators,
    e.g. R$1.234,56. Invalid input renders as zero.
    """
    val = _to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if val < 0 else ""
    body = _group(
        "{:,.2f}".format(abs(val)),
        settings.BUDGET_THOUSANDS_SEPARATOR,
        settings.BUDGET_DECIMAL_SEPARATOR,
    )
    return f"{sign}{settings.BUDGET_CURRENCY_SYMBOL}{body}"


def format_percentage(value):
    val = _to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return "{:.2f}%".format(val).replace(".", settings.BUDGET_DECIMAL_SEPARATOR)
