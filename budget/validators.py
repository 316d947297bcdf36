import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from .parsers import parse_signed_amount

MAX_AMOUNT = Decimal("1000000000000")
CENTS = Decimal("0.01")

DESCRIPTION_MAX_LENGTH = 255
CATEGORY_NAME_MAX_LENGTH = 100
USERNAME_MAX_LENGTH = 50

DATE_INPUT_FORMATS = ("%Y-%m-%d", "%m/%d/%Y")
MAX_YEARS_AHEAD = 10
MIN_YEAR = 1900
MAX_YEAR = 2100

MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")
USERNAME_NOISE = re.compile(r"[^a-zA-Z0-9_\-\s]")


def sanitize_description(value) -> str:
    return re.sub(r"[<>]", "", str(value).strip())[:DESCRIPTION_MAX_LENGTH].strip()


def sanitize_username(value) -> str:
    cleaned = USERNAME_NOISE.sub("", str(value).strip())
    cleaned = re.sub(r"\s+", " ", cleaned)
    return cleaned[:USERNAME_MAX_LENGTH].strip()


def to_amount(value) -> Decimal:
    """
    Coerce a number or statement-style string into a positive amount
    rounded to cents. Raises ValidationError otherwise.
    """
    if isinstance(value, bool):
        raise ValidationError("Invalid amount")

    if isinstance(value, (int, float, Decimal)):
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            raise ValidationError("Invalid amount")
    else:
        amount = parse_signed_amount(value)

    if amount is None or not amount.is_finite():
        raise ValidationError("Invalid amount")

    if amount > MAX_AMOUNT:
        raise ValidationError("Amount is too large")
    amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    if amount <= 0:
        raise ValidationError("Amount must be a positive number")
    return amount


def to_transaction_date(value) -> date:
    if value is None or value == "":
        raise ValidationError("Date is required")

    if isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    else:
        text = str(value).strip()
        parsed = None
        try:
            parsed = parse_date(text)
            if parsed is None:
                moment = parse_datetime(text.replace("Z", "+00:00"))
                parsed = moment.date() if moment else None
        except ValueError:
            parsed = None
        if parsed is None:
            for fmt in DATE_INPUT_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt).date()
                    break
                except ValueError:
                    continue
        if parsed is None:
            raise ValidationError("Invalid date format")

    today = timezone.localdate()
    try:
        limit = today.replace(year=today.year + MAX_YEARS_AHEAD)
    except ValueError:
        limit = today.replace(year=today.year + MAX_YEARS_AHEAD, day=28)
    if parsed > limit:
        raise ValidationError(f"Date cannot be more than {MAX_YEARS_AHEAD} years in the future")
    return parsed


def parse_month(value) -> date:
    """'YYYY-MM' -> first day of that month."""
    match = MONTH_PATTERN.match(str(value or "").strip())
    if not match:
        raise ValidationError("Invalid month. Use the YYYY-MM format")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError("Invalid month. Use the YYYY-MM format")
    return date(year, month, 1)


def parse_year(value) -> int:
    try:
        year = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid year. Year must be between {MIN_YEAR} and {MAX_YEAR}")
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError(f"Invalid year. Year must be between {MIN_YEAR} and {MAX_YEAR}")
    return year


def validate_category_name(value):
    if not isinstance(value, str):
        raise ValidationError("Category name must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError("Category name cannot be empty")
    if len(trimmed) > CATEGORY_NAME_MAX_LENGTH:
        raise ValidationError(f"Category name cannot exceed {CATEGORY_NAME_MAX_LENGTH} characters")
