"""CSV staging: raw delimited text to typed, validated candidate rows.

Everything in this module is a pure transform. Row-level problems are
collected on each StagedTransaction rather than raised, so a whole file can
be previewed and row counts stay stable for review.
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from ledgerline.domain.csv_mapping import AmountMode, CSVMapping, validate_mapping
from ledgerline.domain.errors import RowValidationError, ValidationError
from ledgerline.utils.amount_parser import parse_amount_cents
from ledgerline.utils.date_parser import parse_date_with_format
from ledgerline.utils.text import MAX_DESCRIPTION_LENGTH, sanitize_text

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024
MAX_ROWS = 50_000
EMPTY_HEADER = "__empty__"
PREVIEW_ROWS = 5


@dataclass(frozen=True)
class ParsedCSV:
    """Raw rows of a CSV file keyed by column name."""

    columns: tuple[str, ...]
    rows: tuple[dict[str, str], ...]
    delimiter: str


@dataclass(frozen=True)
class StagedTransaction:
    """A candidate transaction parsed from one CSV row; never persisted."""

    row_index: int
    raw_row: dict[str, str]
    date: Optional[date] = None
    amount: Optional[int] = None
    description: Optional[str] = None
    errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def row_number(self) -> int:
        """1-based data row number, as shown to users."""
        return self.row_index + 1


def sniff_delimiter(sample: str) -> str:
    """Guess the delimiter of a CSV sample, falling back to a comma."""
    try:
        return csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
    except csv.Error:
        return ","


def read_csv_rows(
    text: str,
    has_header_row: bool = True,
    delimiter: Optional[str] = None,
    limit: Optional[int] = None,
) -> ParsedCSV:
    """Split CSV text into rows.

    Quoted fields, embedded delimiters and a leading byte-order mark are
    handled; blank lines are skipped.

    Args:
        text: Full CSV text
        has_header_row: Treat the first row as column names
        delimiter: Field delimiter; sniffed from the text when None
        limit: Stop after this many data rows (preview)

    Returns:
        ParsedCSV with column names and row dicts

    Raises:
        ValidationError: If the text is too large, has too many rows or has
            no columns
    """
    if len(text.encode("utf-8")) > MAX_FILE_SIZE:
        raise ValidationError(
            f"File too large. Maximum size is {MAX_FILE_SIZE // 1024 // 1024}MB."
        )
    text = text.lstrip("\ufeff")

    if delimiter is None:
        delimiter = sniff_delimiter(text[:4096])

    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
    records = [record for record in reader if any(cell.strip() for cell in record)]

    if has_header_row:
        if not records:
            raise ValidationError("CSV file has no columns")
        columns = [name.strip() or EMPTY_HEADER for name in records[0]]
        body = records[1:]
    else:
        width = max((len(record) for record in records), default=0)
        columns = [str(i) for i in range(width)]
        body = records

    if limit is not None:
        body = body[:limit]
    elif len(body) > MAX_ROWS:
        raise ValidationError(f"File has too many rows ({len(body)}). Maximum is {MAX_ROWS}.")

    rows = []
    for record in body:
        row = {}
        for i, column in enumerate(columns):
            # Duplicate column names keep their first value
            if column not in row:
                row[column] = record[i] if i < len(record) else ""
        rows.append(row)

    return ParsedCSV(columns=tuple(columns), rows=tuple(rows), delimiter=delimiter)


def _raw_amount(row: dict[str, str], mapping: CSVMapping) -> str:
    if mapping.amount_mode == AmountMode.SIGNED:
        return row.get(mapping.amount_column or "", "")
    inflow = row.get(mapping.inflow_column or "", "") if mapping.inflow_column else ""
    outflow = row.get(mapping.outflow_column or "", "") if mapping.outflow_column else ""
    return inflow or outflow


def _parse_separate_amount(row: dict[str, str], mapping: CSVMapping) -> int:
    """Inflow counts positive, outflow is always negative."""
    raw_inflow = row.get(mapping.inflow_column, "") if mapping.inflow_column else ""
    raw_outflow = row.get(mapping.outflow_column, "") if mapping.outflow_column else ""

    inflow = parse_amount_cents(raw_inflow) if raw_inflow.strip() else None
    outflow = parse_amount_cents(raw_outflow) if raw_outflow.strip() else None

    if inflow:
        return inflow
    if outflow:
        return -abs(outflow)
    raise ValueError("Missing amount in both inflow and outflow columns")


def stage_row(row: dict[str, str], mapping: CSVMapping, row_index: int) -> StagedTransaction:
    """Turn one raw CSV row into a StagedTransaction.

    Args:
        row: Column name -> cell text
        mapping: Column mapping (assumed already validated)
        row_index: 0-based index of the data row

    Returns:
        StagedTransaction; is_valid is False when any field failed
    """
    errors: list[RowValidationError] = []

    raw_date = (row.get(mapping.date_column) or "").strip()
    raw_description = row.get(mapping.description_column) or ""
    raw_amount = _raw_amount(row, mapping).strip()

    if not raw_date:
        errors.append(RowValidationError(row_index, "Date is required"))
    if not raw_amount and mapping.amount_mode == AmountMode.SIGNED:
        errors.append(RowValidationError(row_index, "Amount is required"))

    txn_date = None
    amount = None
    description = None

    if not errors:
        try:
            txn_date = parse_date_with_format(raw_date, mapping.date_format)
        except ValueError as e:
            errors.append(RowValidationError(row_index, str(e)))

        try:
            if mapping.amount_mode == AmountMode.SIGNED:
                amount = parse_amount_cents(raw_amount)
            else:
                amount = _parse_separate_amount(row, mapping)
        except ValueError as e:
            message = str(e)
            if raw_amount and "Missing amount" not in message:
                message = f"Invalid amount: \"{raw_amount}\""
            errors.append(RowValidationError(row_index, message))

        if raw_description.strip():
            description = sanitize_text(raw_description, MAX_DESCRIPTION_LENGTH)
            if not description:
                errors.append(RowValidationError(row_index, "Description is empty after sanitization"))
        else:
            errors.append(RowValidationError(row_index, "Missing description"))

    return StagedTransaction(
        row_index=row_index,
        raw_row=dict(row),
        date=txn_date,
        amount=amount,
        description=description,
        errors=tuple(str(e) for e in errors),
    )


def stage_rows(rows: Sequence[dict[str, str]], mapping: CSVMapping) -> list[StagedTransaction]:
    """Stage every row of a file, keeping invalid rows in place."""
    staged = [stage_row(row, mapping, index) for index, row in enumerate(rows)]
    invalid = sum(1 for txn in staged if not txn.is_valid)
    if invalid:
        logger.debug("Staged %d rows, %d invalid", len(staged), invalid)
    return staged


def stage_csv(text: str, mapping: CSVMapping) -> tuple[ParsedCSV, list[StagedTransaction]]:
    """Parse CSV text and stage it with a mapping.

    Raises:
        MappingError: If the mapping does not fit the file's columns
        ValidationError: If the file itself cannot be read
    """
    parsed = read_csv_rows(text, has_header_row=mapping.has_header_row, delimiter=mapping.delimiter)
    validate_mapping(mapping, parsed.columns)
    return parsed, stage_rows(parsed.rows, mapping)
