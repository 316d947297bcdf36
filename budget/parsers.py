"""
Bank statement parsing: amount normalisation, CSV tokenising and mapping of
statement rows onto the fields the importer validates.
"""
import csv
import io
import json
import logging
import re
from decimal import Decimal, InvalidOperation

from django.conf import settings

from .exceptions import ImportFileError

logger = logging.getLogger(__name__)

AMOUNT_NOISE = re.compile(r"[^\d.,-]")

CSV_CONTENT_TYPES = {"text/csv", "application/vnd.ms-excel"}
JSON_CONTENT_TYPES = {"application/json"}

BANK_FORMAT_COLUMNS = {"date", "amount", "type of transaction"}


def parse_signed_amount(value):
    """
    Parse an amount as written on a statement, keeping its sign.

    Handles currency symbols and both separator conventions:
      "R$ 1.234,56" -> 1234.56, "1,234.56" -> 1234.56, "-1,23" -> -1.23
    Returns None when nothing numeric is left.
    """
    if value is None:
        return None

    normalized = str(value).strip().strip("\"'").strip()
    if not normalized:
        return None

    normalized = AMOUNT_NOISE.sub("", normalized)

    has_comma = "," in normalized
    has_dot = "." in normalized

    if has_comma and has_dot:
        # Whichever separator comes last is the decimal one
        if normalized.rfind(",") > normalized.rfind("."):
            normalized = normalized.replace(".", "").replace(",", ".")
        else:
            normalized = normalized.replace(",", "")
    elif has_comma:
        parts = normalized.split(",")
        if len(parts) == 2 and len(parts[1]) <= 2:
            normalized = normalized.replace(",", ".")
        else:
            normalized = normalized.replace(",", "")
    elif has_dot and normalized.count(".") > 1:
        normalized = normalized.replace(".", "")

    try:
        amount = Decimal(normalized)
    except InvalidOperation:
        return None

    if not amount.is_finite():
        return None
    return amount


def parse_amount(value):
    """Same as parse_signed_amount but always positive; amounts are stored unsigned."""
    amount = parse_signed_amount(value)
    if amount is None:
        return None
    return abs(amount)


def decode_upload(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def _sniff_delimiter(content: str) -> str:
    header = content.split("\n", 1)[0]
    if ";" in header and "," not in header:
        return ";"
    return ","


def parse_csv(content: str) -> list[list[str]]:
    """
    Split CSV text into trimmed fields.

    Quoted fields may hold delimiters, line breaks and doubled quotes, and
    may follow whitespace after the delimiter. Blank records are dropped.
    Raises ImportFileError when the text is not usable CSV.
    """
    if content.startswith("\ufeff"):
        content = content[1:]

    reader = csv.reader(
        io.StringIO(content, newline=""),
        delimiter=_sniff_delimiter(content),
        skipinitialspace=True,
    )
    rows = []
    try:
        for row in reader:
            fields = [cell.strip() for cell in row]
            if not fields or all(not cell for cell in fields):
                continue
            rows.append(fields)
    except csv.Error as exc:
        raise ImportFileError(f"Failed to parse file: {exc}") from exc
    return rows


def _cell(row, index):
    if index is None or index >= len(row):
        return ""
    return row[index]


def map_bank_row(row, header_map):
    """
    Map one row of the bank export (Filter, Date, Description,
    Sub-description, Type of Transaction, Amount, Balance) onto
    description/amount/type/date.
    """
    sub_description = _cell(row, header_map.get("sub-description"))
    description = sub_description or _cell(row, header_map.get("description"))

    date_text = _cell(row, header_map.get("date"))
    amount_text = _cell(row, header_map.get("amount"))
    type_text = _cell(row, header_map.get("type of transaction")).lower()

    signed = parse_signed_amount(amount_text)

    if type_text == "credit":
        entry_type = "INCOME"
    elif type_text == "debit":
        entry_type = "NEEDS"
    elif signed is not None and signed < 0:
        entry_type = "NEEDS"
    else:
        entry_type = "INCOME"

    return {
        "description": description,
        "amount": abs(signed) if signed is not None else amount_text,
        "type": entry_type,
        "date": date_text,
        "raw_data": {
            "filter": _cell(row, header_map["filter"]) if "filter" in header_map else None,
            "date": date_text,
            "description": _cell(row, header_map["description"]) if "description" in header_map else None,
            "subDescription": sub_description if "sub-description" in header_map else None,
            "typeOfTransaction": type_text,
            "amount": amount_text,
            "balance": _cell(row, header_map["balance"]) if "balance" in header_map else None,
        },
    }


def parse_csv_statement(content: str) -> list[dict]:
    rows = parse_csv(content)
    if not rows:
        return []

    headers = [header.lower().strip() for header in rows[0]]
    header_map = {}
    for index, header in enumerate(headers):
        header_map.setdefault(header, index)

    data_rows = rows[1:]

    if BANK_FORMAT_COLUMNS.issubset(header_map):
        return [map_bank_row(row, header_map) for row in data_rows]

    return [
        {header: _cell(row, index) for index, header in enumerate(headers)}
        for row in data_rows
    ]


def detect_file_kind(filename: str, content_type: str) -> str:
    name = (filename or "").lower()
    content_type = (content_type or "").lower().split(";")[0].strip()

    if content_type in CSV_CONTENT_TYPES or name.endswith(".csv"):
        return "csv"
    if content_type in JSON_CONTENT_TYPES or name.endswith(".json"):
        return "json"
    raise ImportFileError("Invalid file type. Only CSV and JSON files are supported")


def parse_statement(content: str, filename: str = "", content_type: str = "") -> list:
    """
    Turn an uploaded statement into a list of row objects ready for
    validation. Raises ImportFileError when the file as a whole is unusable.
    """
    kind = detect_file_kind(filename, content_type)

    if not content or not content.strip():
        raise ImportFileError("File is empty")

    if kind == "json":
        try:
            rows = json.loads(content)
        except ValueError as exc:
            raise ImportFileError(f"Failed to parse file: {exc}") from exc
        if not isinstance(rows, list):
            raise ImportFileError("JSON file must contain an array of objects")
    else:
        rows = parse_csv_statement(content)

    if not rows:
        raise ImportFileError("No data rows found in file")

    max_rows = settings.BUDGET_IMPORT_MAX_ROWS
    if len(rows) > max_rows:
        raise ImportFileError(
            f"File contains too many rows ({len(rows)}). Maximum allowed: {max_rows}"
        )

    logger.debug("Parsed %s statement %r into %d rows", kind, filename, len(rows))
    return rows
