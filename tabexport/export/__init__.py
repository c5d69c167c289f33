"""Export helpers turning declarative sheet configs into xlsx workbooks."""

from .specs import (
    ColumnSpec,
    ColumnType,
    ExportRequest,
    SheetSpec,
)
from .prep import (
    coerce_date,
    coerce_number,
    coerce_string,
    filter_empty_rows,
    get_nested_value,
    is_empty_value,
    project_rows,
)
from .workbook import AssembledSheet, format_code_for, render_workbook, resolve_sheet_name
from .service import (
    BufferSink,
    build_sheets,
    directory_sink,
    export_multi_sheet_xlsx,
    export_single_sheet_xlsx,
    submit_export,
)

__all__ = [
    "AssembledSheet",
    "BufferSink",
    "ColumnSpec",
    "ColumnType",
    "ExportRequest",
    "SheetSpec",
    "build_sheets",
    "coerce_date",
    "coerce_number",
    "coerce_string",
    "directory_sink",
    "export_multi_sheet_xlsx",
    "export_single_sheet_xlsx",
    "filter_empty_rows",
    "format_code_for",
    "get_nested_value",
    "is_empty_value",
    "project_rows",
    "render_workbook",
    "resolve_sheet_name",
    "submit_export",
]
