from datetime import date
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.utils import timezone

from budget.validators import (
    parse_month,
    parse_year,
    sanitize_description,
    sanitize_username,
    to_amount,
    to_transaction_date,
    validate_category_name,
)


def test_to_amount_rounds_half_up():
    assert to_amount("10.005") == Decimal("10.01")
    assert to_amount(12.344) == Decimal("12.34")
    assert to_amount("R$ 1.234,56") == Decimal("1234.56")
    assert to_amount(5) == Decimal("5.00")


@pytest.mark.parametrize("value, message", [
    ("abc", "Invalid amount"),
    (True, "Invalid amount"),
    (0, "Amount must be a positive number"),
    ("-5", "Amount must be a positive number"),
    ("0.001", "Amount must be a positive number"),
    ("1000000000001", "Amount is too large"),
])
def test_to_amount_rejects(value, message):
    with pytest.raises(ValidationError) as excinfo:
        to_amount(value)
    assert excinfo.value.messages == [message]


def test_to_amount_upper_bound_is_inclusive():
    assert to_amount("1000000000000") == Decimal("1000000000000.00")


@pytest.mark.parametrize("value, expected", [
    ("2024-03-15", date(2024, 3, 15)),
    ("2024-03-15T10:30:00Z", date(2024, 3, 15)),
    ("2024-03-15T23:59:59.123+00:00", date(2024, 3, 15)),
    ("03/15/2024", date(2024, 3, 15)),
    (date(2024, 3, 15), date(2024, 3, 15)),
])
def test_to_transaction_date_formats(value, expected):
    assert to_transaction_date(value) == expected


def test_to_transaction_date_errors():
    with pytest.raises(ValidationError, match="Date is required"):
        to_transaction_date("")
    with pytest.raises(ValidationError, match="Invalid date format"):
        to_transaction_date("15.03.2024")
    with pytest.raises(ValidationError, match="Invalid date format"):
        to_transaction_date("2024-02-30")

    far = timezone.localdate().replace(day=1)
    far = far.replace(year=far.year + 11)
    with pytest.raises(ValidationError, match="10 years in the future"):
        to_transaction_date(far.isoformat())


def test_sanitize_description():
    assert sanitize_description("  <b>Lunch</b> ") == "bLunch/b"
    assert len(sanitize_description("x" * 400)) == 255


def test_sanitize_username():
    assert sanitize_username("  john   doe! ") == "john doe"
    assert sanitize_username("<script>") == "script"
    assert len(sanitize_username("a" * 80)) == 50


def test_parse_month():
    assert parse_month("2024-02") == date(2024, 2, 1)
    for bad in ("2024-13", "2024-1", "24-01", "", None, "1800-01"):
        with pytest.raises(ValidationError):
            parse_month(bad)


def test_parse_year():
    assert parse_year("2024") == 2024
    assert parse_year(1900) == 1900
    for bad in ("abc", "1899", "2101", None):
        with pytest.raises(ValidationError, match="between 1900 and 2100"):
            parse_year(bad)


def test_validate_category_name():
    validate_category_name("Food")
    with pytest.raises(ValidationError, match="cannot be empty"):
        validate_category_name("   ")
    with pytest.raises(ValidationError, match="cannot exceed 100"):
        validate_category_name("x" * 101)
    with pytest.raises(ValidationError, match="must be a string"):
        validate_category_name(12)
