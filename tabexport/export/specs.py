from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Sequence

Record = Any
FormatFn = Callable[[Record, str, int], object]

DEFAULT_COLUMN_WIDTH = 12
DEFAULT_DECIMAL_PLACES = 2
DEFAULT_DATE_FORMAT = "yyyy-mm-dd"
# Excel keeps 15 significant digits; more fractional places are noise.
MAX_DECIMAL_PLACES = 15


class ColumnType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    DATE = "date"

    @classmethod
    def parse(cls, raw: object) -> "ColumnType":
        """Resolve a type tag case-insensitively; unknown tags fall back to STRING."""
        if isinstance(raw, cls):
            return raw
        text = str(raw or "").strip().lower()
        for member in cls:
            if member.value == text:
                return member
        return cls.STRING


def _pick(data: Mapping[str, Any], *names: str, default=None):
    for name in names:
        if name in data:
            return data[name]
    return default


def _normalize_decimal_places(raw: object) -> int:
    if isinstance(raw, bool):
        return DEFAULT_DECIMAL_PLACES
    try:
        value = int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return DEFAULT_DECIMAL_PLACES
    if value < 0:
        return DEFAULT_DECIMAL_PLACES
    return min(value, MAX_DECIMAL_PLACES)


def normalize_width(raw: object) -> float | None:
    """Positive widths pass through; anything else means "use the default"."""
    if isinstance(raw, bool) or not raw:
        return None
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if value <= 0:
        return None
    return int(value) if value.is_integer() else value


@dataclass(frozen=True)
class ColumnSpec:
    """One column projection rule: where the value comes from and how it is typed."""

    title: str
    key: str | None = None
    width: float | None = None
    type: ColumnType = ColumnType.STRING
    decimal_places: int = DEFAULT_DECIMAL_PLACES
    date_format: str = DEFAULT_DATE_FORMAT
    format_fn: FormatFn | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", ColumnType.parse(self.type))
        object.__setattr__(self, "decimal_places", _normalize_decimal_places(self.decimal_places))
        object.__setattr__(self, "width", normalize_width(self.width))
        if not self.date_format:
            object.__setattr__(self, "date_format", DEFAULT_DATE_FORMAT)

    @property
    def lookup_key(self) -> str:
        return self.key or self.title

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ColumnSpec":
        title = _pick(data, "title", default="")
        key = _pick(data, "key")
        return cls(
            title="" if title is None else str(title),
            key=None if key in (None, "") else str(key),
            width=_pick(data, "width"),
            type=_pick(data, "type", default=ColumnType.STRING),
            decimal_places=_pick(data, "decimal_places", "decimalPlaces", default=DEFAULT_DECIMAL_PLACES),
            date_format=_pick(data, "date_format", "dateFormat", default=DEFAULT_DATE_FORMAT),
            format_fn=_pick(data, "format_fn", "formatFn"),
        )


@dataclass(frozen=True)
class SheetSpec:
    sheet_name: str | None
    columns: Sequence[ColumnSpec] = field(default_factory=tuple)
    data: Sequence[Record] = field(default_factory=tuple)
    ignore_empty_rows: bool = True
    column_widths: Sequence[float] | None = None

    @property
    def titles(self) -> list[str]:
        return [column.title for column in self.columns]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SheetSpec":
        raw_columns = _pick(data, "columns")
        columns: list[ColumnSpec] = []
        if isinstance(raw_columns, (list, tuple)):
            for column in raw_columns:
                if isinstance(column, ColumnSpec):
                    columns.append(column)
                elif isinstance(column, Mapping):
                    columns.append(ColumnSpec.from_mapping(column))
                else:
                    # Keeps the column count honest so validation can reject the sheet.
                    columns.append(ColumnSpec(title=""))

        raw_data = _pick(data, "data")
        records = list(raw_data) if isinstance(raw_data, (list, tuple)) else []

        raw_widths = _pick(data, "column_widths", "columnWidths")
        widths = list(raw_widths) if isinstance(raw_widths, (list, tuple)) else None

        sheet_name = _pick(data, "sheet_name", "sheetName")
        return cls(
            sheet_name=None if sheet_name is None else str(sheet_name),
            columns=tuple(columns),
            data=tuple(records),
            ignore_empty_rows=bool(_pick(data, "ignore_empty_rows", "ignoreEmptyRows", default=True)),
            column_widths=widths,
        )


@dataclass(frozen=True)
class ExportRequest:
    sheets: Sequence[SheetSpec] = field(default_factory=tuple)
    file_name: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ExportRequest":
        raw_sheets = _pick(data, "sheets")
        sheets: list[SheetSpec] = []
        if isinstance(raw_sheets, (list, tuple)):
            for sheet in raw_sheets:
                if isinstance(sheet, SheetSpec):
                    sheets.append(sheet)
                elif isinstance(sheet, Mapping):
                    sheets.append(SheetSpec.from_mapping(sheet))
                else:
                    sheets.append(SheetSpec(sheet_name=None))

        file_name = _pick(data, "file_name", "fileName")
        return cls(
            sheets=tuple(sheets),
            file_name=file_name if isinstance(file_name, str) and file_name else None,
        )


def as_request(request: ExportRequest | Mapping[str, Any] | None) -> ExportRequest:
    if isinstance(request, ExportRequest):
        return request
    if isinstance(request, Mapping):
        return ExportRequest.from_mapping(request)
    return ExportRequest()


__all__ = [
    "ColumnSpec",
    "ColumnType",
    "DEFAULT_COLUMN_WIDTH",
    "DEFAULT_DATE_FORMAT",
    "DEFAULT_DECIMAL_PLACES",
    "ExportRequest",
    "FormatFn",
    "MAX_DECIMAL_PLACES",
    "Record",
    "SheetSpec",
    "as_request",
    "normalize_width",
]
