from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation
from typing import Iterable, Mapping, Sequence

from dateutil import parser as date_parser

from .specs import ColumnSpec, ColumnType, Record

Row = dict[str, object]
CellValue = object

_LOGGER = logging.getLogger(__name__)

# Missing date parts default to January 1st, 1970 rather than to today.
_EPOCH = datetime(1970, 1, 1)


def _is_walkable(value: object) -> bool:
    if isinstance(value, (str, bytes, bytearray)):
        return False
    if isinstance(value, (Mapping, list, tuple)):
        return True
    return hasattr(value, "__dict__")


def _step_into(current: object, part: str) -> object:
    if isinstance(current, Mapping):
        return current.get(part)
    if isinstance(current, (list, tuple)):
        try:
            index = int(part)
        except ValueError:
            return None
        if -len(current) <= index < len(current):
            return current[index]
        return None
    if _is_walkable(current):
        return getattr(current, part, None)
    return None


def get_nested_value(record: Record, key: str | None) -> object:
    """Resolve a dotted path such as ``user.name`` against ``record``.

    Returns ``""`` when the record is not a container, when ``key`` is empty,
    or when an intermediate step is ``None``. A missing final segment returns
    ``None``.
    """
    if not key or record is None or not _is_walkable(record):
        return ""
    current: object = record
    for part in str(key).split("."):
        if current is None:
            return ""
        current = _step_into(current, part)
    return current


def _within_float_range(number: Decimal) -> Decimal:
    # Excel cells hold doubles; anything a float cannot represent counts as zero.
    if not number.is_finite() or not math.isfinite(float(number)):
        return Decimal(0)
    return number


def _to_decimal(value) -> Decimal:
    if value is None or isinstance(value, bool):
        return Decimal(int(bool(value)))
    if isinstance(value, Decimal):
        return _within_float_range(value)
    if isinstance(value, int):
        return _within_float_range(Decimal(value))
    if isinstance(value, float):
        if not math.isfinite(value):
            return Decimal(0)
        return Decimal(repr(value))
    text = str(value).strip()
    if not text:
        return Decimal(0)
    try:
        parsed = Decimal(text)
    except (InvalidOperation, TypeError, ValueError):
        return Decimal(0)
    return _within_float_range(parsed)


def coerce_number(value, decimal_places: int = 2) -> int | float:
    """Round ``value`` to ``decimal_places`` and drop a fractional part that is all zeros.

    Whole results (zero included) come back as ``int`` so they never render
    with a decimal point; everything else is a ``float`` carrying at most
    ``decimal_places`` fractional digits. Unparseable input counts as zero.
    """
    number = _to_decimal(value)
    places = max(int(decimal_places), 0)
    quantum = Decimal(1).scaleb(-places)
    context = Context(prec=max(28, number.adjusted() + places + 2))
    rounded = number.quantize(quantum, rounding=ROUND_HALF_UP, context=context)
    if places == 0 or rounded == rounded.to_integral_value():
        return int(rounded)
    return float(rounded)


def coerce_string(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def coerce_date(value) -> datetime | date | str:
    """Parse ``value`` into a date/datetime, or ``""`` when it is not a date."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, datetime):
        return _naive(value)
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float, Decimal)):
        # Numbers are epoch milliseconds.
        try:
            return _EPOCH + timedelta(milliseconds=float(value))
        except (OverflowError, ValueError):
            return ""
    text = str(value).strip()
    if not text:
        return ""
    try:
        parsed = date_parser.parse(text, default=_EPOCH)
    except (ValueError, OverflowError):
        return ""
    return _naive(parsed)


def coerce_value(value, column: ColumnSpec) -> CellValue:
    if column.type is ColumnType.NUMBER:
        return coerce_number(value, column.decimal_places)
    if column.type is ColumnType.DATE:
        return coerce_date(value)
    return coerce_string(value)


def zero_value(column: ColumnSpec) -> CellValue:
    return 0 if column.type is ColumnType.NUMBER else ""


@dataclass(frozen=True)
class ProjectedCell:
    """Outcome of projecting one record through one column."""

    value: CellValue
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def project_cell(record: Record, column: ColumnSpec, row_index: int) -> ProjectedCell:
    try:
        if column.format_fn is not None:
            raw = column.format_fn(record, column.lookup_key, row_index)
        else:
            raw = get_nested_value(record, column.key)
        return ProjectedCell(coerce_value(raw, column))
    except Exception as exc:
        return ProjectedCell(zero_value(column), exc)


def project_row(
    record: Record,
    columns: Sequence[ColumnSpec],
    row_index: int,
    *,
    sheet_name: str | None = None,
    logger: logging.Logger | None = None,
) -> Row:
    log = logger or _LOGGER
    row: Row = {}
    for column in columns:
        cell = project_cell(record, column, row_index)
        if not cell.ok:
            log.warning(
                "Sheet [%s] row %s column %r: projection failed (%s); using %r.",
                sheet_name,
                row_index,
                column.title,
                cell.error,
                cell.value,
            )
        row[column.title] = cell.value
    return row


def project_rows(
    records: Iterable[Record],
    columns: Sequence[ColumnSpec],
    *,
    sheet_name: str | None = None,
    logger: logging.Logger | None = None,
) -> list[Row]:
    return [
        project_row(record, columns, row_index, sheet_name=sheet_name, logger=logger)
        for row_index, record in enumerate(records)
    ]


def is_empty_value(value: object) -> bool:
    if isinstance(value, (date, datetime, bool)):
        return False
    if isinstance(value, float):
        return math.isnan(value)
    if isinstance(value, Decimal):
        return value.is_nan()
    if isinstance(value, int):
        return False
    return value is None or value == ""


def filter_empty_rows(rows: Iterable[Row]) -> list[Row]:
    return [row for row in rows if not all(is_empty_value(value) for value in row.values())]


__all__ = [
    "CellValue",
    "ProjectedCell",
    "Row",
    "coerce_date",
    "coerce_number",
    "coerce_string",
    "coerce_value",
    "filter_empty_rows",
    "get_nested_value",
    "is_empty_value",
    "project_cell",
    "project_row",
    "project_rows",
    "zero_value",
]
