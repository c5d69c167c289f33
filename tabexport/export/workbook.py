from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import MutableSet, Sequence

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils import get_column_letter

from .prep import Row
from .specs import DEFAULT_COLUMN_WIDTH, ColumnSpec, ColumnType, SheetSpec, normalize_width

MAX_SHEET_NAME_LENGTH = 31
INTEGER_FORMAT = "0"
TEXT_FORMAT = "@"

_INVALID_SHEET_CHARS_RE = re.compile(r"[\[\]:*?/\\]")
_LOGGER = logging.getLogger(__name__)


def format_code_for(column: ColumnSpec) -> str:
    """Excel number format applied to every cell of ``column``."""
    if column.type is ColumnType.NUMBER:
        if column.decimal_places == 0:
            return INTEGER_FORMAT
        # Optional digits: 1.5 renders as 1.5, never 1.50
        return f"#,##0.{'#' * column.decimal_places}"
    if column.type is ColumnType.DATE:
        return column.date_format
    return TEXT_FORMAT


def sanitize_sheet_name(name: str) -> str:
    cleaned = _INVALID_SHEET_CHARS_RE.sub("_", str(name))
    # Control characters would make workbook.xml unreadable; Excel rejects edge quotes.
    cleaned = ILLEGAL_CHARACTERS_RE.sub("", cleaned).strip().strip("'").strip()
    return cleaned[:MAX_SHEET_NAME_LENGTH] or "Sheet"


def resolve_sheet_name(name: str, position: int, used_names: MutableSet[str]) -> str:
    """Return a workbook-unique sheet name and record it in ``used_names``.

    The first sheet with a given name keeps it; a later one is suffixed with
    ``_<position>`` (its 1-based place in the request), counting upward while
    the suffixed name is also taken. Comparison is case-insensitive, like
    Excel's. ``used_names`` holds casefolded names.
    """
    base = sanitize_sheet_name(name)
    candidate = base
    counter = position
    while candidate.casefold() in used_names:
        suffix = f"_{counter}"
        candidate = f"{base[: MAX_SHEET_NAME_LENGTH - len(suffix)]}{suffix}"
        counter += 1
    used_names.add(candidate.casefold())
    return candidate


@dataclass(frozen=True)
class AssembledSheet:
    """Everything the writer needs for one worksheet."""

    name: str
    headers: list[str]
    rows: list[Row]
    widths: list[float]
    formats: list[str]

    def matrix(self) -> list[list[object]]:
        return [list(self.headers)] + [[row.get(header) for header in self.headers] for row in self.rows]


def column_widths_for(sheet: SheetSpec, default_width: float = DEFAULT_COLUMN_WIDTH) -> list[float]:
    if sheet.column_widths is not None:
        return [normalize_width(width) or default_width for width in sheet.column_widths]
    return [column.width or default_width for column in sheet.columns]


def assemble_sheet(
    sheet: SheetSpec,
    rows: list[Row],
    *,
    position: int,
    used_names: MutableSet[str],
    default_width: float = DEFAULT_COLUMN_WIDTH,
    logger: logging.Logger | None = None,
) -> AssembledSheet:
    log = logger or _LOGGER
    requested_name = str(sheet.sheet_name)
    final_name = resolve_sheet_name(requested_name, position, used_names)
    if final_name != requested_name:
        log.warning("Sheet name %r is taken or invalid; exporting it as %r.", requested_name, final_name)

    columns = list(sheet.columns)
    return AssembledSheet(
        name=final_name,
        headers=[column.title for column in columns],
        rows=rows,
        widths=column_widths_for(sheet, default_width),
        formats=[format_code_for(column) for column in columns],
    )


def _coerce_excel_value(value):
    if value is None:
        return ""
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return value


def render_workbook(sheets: Sequence[AssembledSheet], *, freeze_header: bool = True) -> Workbook:
    workbook = Workbook()
    workbook.remove(workbook.active)

    for sheet in sheets:
        worksheet = workbook.create_sheet(title=sheet.name)
        worksheet.append([_coerce_excel_value(header) for header in sheet.headers])
        for data_row in sheet.rows:
            worksheet.append([_coerce_excel_value(data_row.get(header)) for header in sheet.headers])

        last_row = len(sheet.rows) + 1
        for col_idx, (width, number_format) in enumerate(zip(sheet.widths, sheet.formats), start=1):
            worksheet.column_dimensions[get_column_letter(col_idx)].width = width
            for (cell,) in worksheet.iter_rows(min_row=1, max_row=last_row, min_col=col_idx, max_col=col_idx):
                cell.number_format = number_format

        if freeze_header:
            worksheet.freeze_panes = "A2"

    return workbook


__all__ = [
    "AssembledSheet",
    "INTEGER_FORMAT",
    "MAX_SHEET_NAME_LENGTH",
    "TEXT_FORMAT",
    "assemble_sheet",
    "column_widths_for",
    "format_code_for",
    "render_workbook",
    "resolve_sheet_name",
    "sanitize_sheet_name",
]
