"""Spreadsheet ingestion: parse, validate, dedupe and append participants.

A batch is all-or-nothing with respect to validation errors: every row is
checked and all problems are reported together, and nothing is stored unless
the whole batch is clean. Rows that are already in the store are not errors,
they are skipped and counted.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import openpyxl
import xlrd

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = [
    'P.No', 'Mobile No', 'Name', 'Trade', 'Gender', 'Attendance Day 1', 'Attendance Day 2',
]
ATTENDANCE_COLUMNS = ['Attendance Day 1', 'Attendance Day 2']
ATTENDANCE_VALUES = ('P', 'A')
XLS_MIME_TYPE = 'application/vnd.ms-excel'


class SchemaError(Exception):
    def __init__(self, missing_columns):
        self.missing_columns = list(missing_columns)
        super().__init__(f"Missing required columns: {', '.join(self.missing_columns)}")


@dataclass(frozen=True)
class RowError:
    row: int
    message: str

    def __str__(self):
        return f"Row {self.row}: {self.message}"


class ValidationError(Exception):
    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__('Validation failed')


@dataclass(frozen=True)
class IngestResult:
    total_rows: int
    inserted: int
    duplicates_skipped: int
    persisted: bool = True


def _cell_text(value):
    """Render a spreadsheet cell the way it reads in the sheet (9876543210.0 -> '9876543210')."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _rows_from_values(value_rows):
    """Turn header + data value rows into dicts keyed by the header.

    Fully empty rows are dropped, as are columns with a blank header.
    """
    header = next(value_rows, None)
    if header is None:
        return []
    columns = [(i, str(h).strip()) for i, h in enumerate(header) if h is not None and str(h).strip()]

    records = []
    for values in value_rows:
        row = {}
        for i, name in columns:
            row[name] = _cell_text(values[i]) if i < len(values) else None
        if any(v is not None and v.strip() for v in row.values()):
            records.append(row)
    return records


def read_workbook_rows(stream):
    """Return the first worksheet of an .xlsx workbook as header-keyed dicts."""
    wb = openpyxl.load_workbook(stream, read_only=True, data_only=True)
    try:
        return _rows_from_values(wb.worksheets[0].iter_rows(values_only=True))
    finally:
        wb.close()


def read_xls_rows(stream):
    """Return the first sheet of a legacy .xls workbook as header-keyed dicts."""
    book = xlrd.open_workbook(file_contents=stream.read())
    try:
        sheet = book.sheet_by_index(0)
        # xlrd reports empty cells as ''
        values = ([None if v == '' else v for v in sheet.row_values(i)] for i in range(sheet.nrows))
        return _rows_from_values(values)
    finally:
        book.release_resources()


def read_spreadsheet_rows(stream, filename='', mimetype=''):
    """Pick the reader from the file extension, falling back to the MIME type."""
    name = (filename or '').lower()
    if name.endswith('.xls') or (not name.endswith('.xlsx') and mimetype == XLS_MIME_TYPE):
        return read_xls_rows(stream)
    return read_workbook_rows(stream)


def _is_blank(value):
    return value is None or not str(value).strip()


def _attendance(value):
    return str(value).strip().upper()


def check_columns(rows):
    """Raise SchemaError if the first row lacks any required column."""
    first = rows[0] if rows else {}
    missing = [col for col in REQUIRED_COLUMNS if col not in first]
    if missing:
        raise SchemaError(missing)


def validate_rows(rows):
    """Collect every RowError in the batch; raise ValidationError if there are any."""
    check_columns(rows)

    errors = []
    seen_p_no = set()
    seen_mobile = set()

    # header is row 1
    for row_no, row in enumerate(rows, start=2):
        p_no = row.get('P.No')
        mobile_no = row.get('Mobile No')

        if _is_blank(p_no) or _is_blank(mobile_no) or _is_blank(row.get('Name')):
            errors.append(RowError(row_no, 'Missing required fields (P.No, Mobile No, or Name)'))

        if not _is_blank(p_no):
            if str(p_no) in seen_p_no:
                errors.append(RowError(row_no, f"Duplicate P.No '{p_no}'"))
            seen_p_no.add(str(p_no))
        if not _is_blank(mobile_no):
            if str(mobile_no) in seen_mobile:
                errors.append(RowError(row_no, f"Duplicate Mobile No '{mobile_no}'"))
            seen_mobile.add(str(mobile_no))

        for col in ATTENDANCE_COLUMNS:
            if _attendance(row.get(col)) not in ATTENDANCE_VALUES:
                errors.append(RowError(
                    row_no, f"Invalid value for {col} (expected P or A, got {row.get(col)})"))

    if errors:
        raise ValidationError(errors)


def _now_iso():
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def to_participant(row):
    return {
        'p_no': str(row['P.No']),
        'mobile_no': str(row['Mobile No']),
        'name': str(row['Name']),
        'trade': str(row.get('Trade') or ''),
        'gender': str(row.get('Gender') or ''),
        'attendance_day1': _attendance(row['Attendance Day 1']),
        'attendance_day2': _attendance(row['Attendance Day 2']),
        'created_at': _now_iso(),
    }


def ingest_rows(rows, store) -> IngestResult:
    """Validate a batch and append the rows not already in `store`.

    Raises SchemaError or ValidationError without touching the store.
    """
    validate_rows(rows)

    with store.lock:
        new_participants = []
        for row in rows:
            p_no = str(row['P.No'])
            mobile_no = str(row['Mobile No'])
            if store.exists_by_key(p_no=p_no, mobile_no=mobile_no):
                logger.warning("Skipping duplicate entry: %s - %s", p_no, row.get('Name'))
                continue
            new_participants.append(to_participant(row))

        persisted = True
        if new_participants:
            persisted = store.append(new_participants)

    result = IngestResult(
        total_rows=len(rows),
        inserted=len(new_participants),
        duplicates_skipped=len(rows) - len(new_participants),
        persisted=persisted,
    )
    logger.info("Ingested batch: %d rows, %d inserted, %d duplicates skipped",
                result.total_rows, result.inserted, result.duplicates_skipped)
    return result
