"""
Statement import pipeline.

An upload is parsed, every row is validated on its own, rows matching an
existing transaction (same date and amount) are flagged as duplicates, and
the survivors are staged as PendingTransaction rows under one ImportBatch.
Nothing reaches Transaction or MonthlySummary until the user commits.
"""
import logging
from collections import namedtuple
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from .exceptions import ImportFileError, PendingNotFound, RowError
from .models import Category, ImportBatch, PendingTransaction, Transaction, TransactionType
from .parsers import decode_upload, parse_statement
from .summaries import apply_transaction_delta, is_category_compatible
from .validators import sanitize_description, to_amount, to_transaction_date

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("description", "amount", "type", "date")
CATEGORY_ID_KEYS = ("categoryid", "category_id")
ERRORS_WHEN_NOTHING_VALID = 5
EXPIRED_MESSAGE = "Transaction has expired. Please re-import."

ParsedRow = namedtuple("ParsedRow", ["description", "amount", "type", "date", "category_id", "raw_data"])
ImportResult = namedtuple("ImportResult", ["batch", "created_ids", "total", "valid", "duplicates", "errors"])


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_row(row, categories) -> ParsedRow:
    """
    Validate one parsed statement row.

    ``categories`` maps category id -> Category for the importing user.
    Raises RowError with a user-facing reason.
    """
    if not isinstance(row, dict):
        raise RowError("Invalid row format")

    data = {str(key).strip().lower(): value for key, value in row.items()}

    missing = [name for name in REQUIRED_FIELDS if _blank(data.get(name))]
    if missing:
        raise RowError(f"Missing required fields: {', '.join(missing)}")

    description = sanitize_description(data["description"])
    if not description:
        raise RowError("Description cannot be empty")

    entry_type = str(data["type"]).strip().upper()
    if entry_type not in TransactionType.values:
        raise RowError(f"Invalid transaction type: {data['type']}")

    try:
        amount = to_amount(data["amount"])
        entry_date = to_transaction_date(data["date"])
    except ValidationError as exc:
        raise RowError(exc.messages[0]) from exc

    category_id = None
    raw_category = next(
        (data[key] for key in CATEGORY_ID_KEYS if not _blank(data.get(key))),
        None,
    )
    if raw_category is not None:
        try:
            category_id = int(str(raw_category).strip())
        except ValueError:
            raise RowError("Invalid category ID")
        if category_id <= 0:
            raise RowError("Invalid category ID")

        category = categories.get(category_id)
        if category is None:
            raise RowError("Category not found or access denied")
        if not is_category_compatible(category.type, entry_type):
            raise RowError(
                f"Category type {category.type} does not match transaction type {entry_type}"
            )

    raw_data = data.get("raw_data")
    return ParsedRow(
        description=description,
        amount=amount,
        type=entry_type,
        date=entry_date,
        category_id=category_id,
        raw_data=raw_data if isinstance(raw_data, dict) else None,
    )


def find_duplicate_keys(user, rows) -> set:
    """
    (date, amount) pairs among ``rows`` that already exist as transactions
    of ``user``. Only the date window spanned by the rows is queried.
    """
    if not rows:
        return set()

    dates = [row.date for row in rows]
    existing = set(
        Transaction.objects
        .filter(user=user, date__range=(min(dates), max(dates)))
        .values_list("date", "amount")
    )
    return {(row.date, row.amount) for row in rows if (row.date, row.amount) in existing}


def stage_import(user, upload) -> ImportResult:
    """
    Parse ``upload`` (a Django UploadedFile) and stage its valid rows.
    Raises ImportFileError when the file is unusable or has no valid row.
    """
    content = decode_upload(upload.read())
    rows = parse_statement(content, upload.name, getattr(upload, "content_type", ""))

    categories = {category.pk: category for category in Category.objects.filter(user=user)}

    parsed = []
    errors = []
    for index, row in enumerate(rows, start=1):
        try:
            parsed.append(validate_row(row, categories))
        except RowError as exc:
            errors.append(f"Row {index}: {exc.message}")

    if not parsed:
        raise ImportFileError(
            f"No valid rows found. Errors: {'; '.join(errors[:ERRORS_WHEN_NOTHING_VALID])}"
        )

    duplicate_keys = find_duplicate_keys(user, parsed)
    expires_at = timezone.now() + timedelta(hours=settings.BUDGET_PENDING_EXPIRATION_HOURS)
    dates = [row.date for row in parsed]

    with transaction.atomic():
        batch = ImportBatch.objects.create(
            user=user,
            filename=(upload.name or "")[:255],
            earliest_date=min(dates),
            latest_date=max(dates),
            total_rows=len(rows),
            valid_rows=len(parsed),
            error_count=len(errors),
        )

        created_ids = []
        duplicates = 0
        for row in parsed:
            is_duplicate = (row.date, row.amount) in duplicate_keys
            pending = PendingTransaction.objects.create(
                user=user,
                batch=batch,
                description=row.description,
                amount=row.amount,
                date=row.date,
                type=row.type,
                category_id=row.category_id,
                expires_at=expires_at,
                is_duplicate=is_duplicate,
                raw_data=row.raw_data,
            )
            created_ids.append(pending.pk)
            duplicates += is_duplicate

        batch.duplicate_count = duplicates
        batch.save(update_fields=["duplicate_count"])

    logger.info(
        "User %s staged %d of %d rows from %r as batch %s (%d duplicates, %d errors)",
        user.pk, len(created_ids), len(rows), batch.filename, batch.pk, duplicates, len(errors),
    )

    return ImportResult(
        batch=batch,
        created_ids=created_ids,
        total=len(rows),
        valid=len(parsed),
        duplicates=duplicates,
        errors=errors,
    )


def active_pending(user):
    return PendingTransaction.objects.filter(user=user, expires_at__gt=timezone.now())


def _commit_one(user, pending) -> Transaction:
    with transaction.atomic():
        if pending.is_expired:
            raise RowError(EXPIRED_MESSAGE)

        category = pending.category
        if category is not None and (
            category.user_id != user.pk
            or not is_category_compatible(category.type, pending.type)
        ):
            category = None

        committed = Transaction.objects.create(
            user=user,
            description=pending.description,
            amount=pending.amount,
            date=pending.date,
            type=pending.type,
            category=category,
            import_batch_id=pending.batch_id,
        )
        apply_transaction_delta(user, pending.date, pending.type, new_amount=pending.amount)
        pending.delete()
    return committed


def commit_pending(user, ids) -> dict:
    """
    Turn the user's pending rows into transactions, one atomic block per row
    so a failing row never blocks the others.
    Raises PendingNotFound when none of ``ids`` belongs to the user.
    """
    pending_rows = list(
        PendingTransaction.objects
        .filter(user=user, pk__in=ids)
        .select_related("category")
        .order_by("date", "id")
    )
    if not pending_rows:
        raise PendingNotFound("No pending transactions found or access denied")

    results = []
    errors = []
    for pending in pending_rows:
        pending_id = pending.pk
        try:
            committed = _commit_one(user, pending)
        except RowError as exc:
            errors.append({"id": pending_id, "error": exc.message})
            results.append({"id": pending_id, "success": False, "error": exc.message})
            continue
        except DatabaseError:
            logger.exception("Failed to commit pending transaction %s for user %s", pending_id, user.pk)
            message = "Failed to commit transaction"
            errors.append({"id": pending_id, "error": message})
            results.append({"id": pending_id, "success": False, "error": message})
            continue
        results.append({"id": pending_id, "success": True, "transactionId": committed.pk})

    committed_count = len(results) - len(errors)
    logger.info(
        "User %s committed %d of %d pending transactions",
        user.pk, committed_count, len(pending_rows),
    )
    return {
        "success": committed_count > 0,
        "stats": {
            "total": len(pending_rows),
            "committed": committed_count,
            "failed": len(errors),
        },
        "results": results,
        "errors": errors,
    }


def purge_expired_pending() -> int:
    deleted, _ = PendingTransaction.objects.filter(expires_at__lte=timezone.now()).delete()
    if deleted:
        logger.info("Purged %d expired pending transactions", deleted)
    return deleted
