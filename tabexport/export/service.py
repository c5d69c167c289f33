"""Multi-sheet xlsx export: validation, projection, assembly and writing.

Problems with a single sheet are logged and that sheet is skipped; problems
with a single cell fall back to the column's zero value. Only an export where
no sheet survives, or where writing the workbook fails, reports ``False`` and
triggers the user-facing ``notify`` callback.
"""

from __future__ import annotations

import io
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Mapping

from flask import current_app
from openpyxl import Workbook

from ..config import Config
from .prep import filter_empty_rows, project_rows
from .specs import ExportRequest, SheetSpec, as_request
from .workbook import AssembledSheet, assemble_sheet, render_workbook

Sink = Callable[[Workbook, str], None]
Notifier = Callable[[str], None]

NO_DATA_ALERT = "Export failed: there is no valid data to export."
WRITER_ALERT = "Export failed: please refresh the page and try again."

_LOGGER = logging.getLogger(__name__)
_THREAD_POOL = ThreadPoolExecutor(max_workers=2, thread_name_prefix="xlsx-export")


def _logger() -> logging.Logger:
    try:
        return current_app.logger
    except RuntimeError:
        # No application context -> plain module logger.
        return _LOGGER


def _setting(name: str):
    try:
        return current_app.config.get(name, getattr(Config, name))
    except RuntimeError:
        return getattr(Config, name)


def default_file_name(label: str | None = None) -> str:
    base = label or _setting("EXPORT_DEFAULT_FILE_LABEL")
    return f"{base}_{int(time.time() * 1000)}"


def validate_sheet(sheet: SheetSpec, position: int, logger: logging.Logger | None = None) -> bool:
    """Check the fields a sheet cannot be exported without; log why it is rejected."""
    log = logger or _logger()

    if not sheet.sheet_name or not str(sheet.sheet_name).strip():
        log.error("Sheet #%s is missing sheet_name; skipped.", position)
        return False
    if not sheet.columns:
        log.error("Sheet [%s] has no columns configured; skipped.", sheet.sheet_name)
        return False
    if not sheet.data:
        log.error("Sheet [%s] has no data; skipped.", sheet.sheet_name)
        return False

    titles = sheet.titles
    if any(not title for title in titles):
        log.error("Sheet [%s] has a column without a title; skipped.", sheet.sheet_name)
        return False
    duplicates = sorted({title for title in titles if titles.count(title) > 1})
    if duplicates:
        log.error("Sheet [%s] repeats column titles %s; skipped.", sheet.sheet_name, duplicates)
        return False
    if sheet.column_widths is not None and len(sheet.column_widths) != len(sheet.columns):
        log.error(
            "Sheet [%s] lists %s column widths for %s columns; skipped.",
            sheet.sheet_name,
            len(sheet.column_widths),
            len(sheet.columns),
        )
        return False
    return True


def build_sheets(
    request: ExportRequest | Mapping[str, Any],
    *,
    logger: logging.Logger | None = None,
) -> list[AssembledSheet]:
    """Run validation, projection, empty-row filtering and assembly for every sheet."""
    log = logger or _logger()
    export_request = as_request(request)
    default_width = _setting("EXPORT_DEFAULT_COLUMN_WIDTH")

    used_names: set[str] = set()
    assembled: list[AssembledSheet] = []
    for position, sheet in enumerate(export_request.sheets, start=1):
        if not validate_sheet(sheet, position, log):
            continue

        rows = project_rows(sheet.data, sheet.columns, sheet_name=sheet.sheet_name, logger=log)
        if sheet.ignore_empty_rows:
            rows = filter_empty_rows(rows)
            if not rows:
                log.warning("Sheet [%s] has no rows left after dropping empty rows; skipped.", sheet.sheet_name)
                continue

        assembled.append(
            assemble_sheet(
                sheet,
                rows,
                position=position,
                used_names=used_names,
                default_width=default_width,
                logger=log,
            )
        )
    return assembled


def _log_alert(message: str) -> None:
    _logger().error("User alert: %s", message)


def directory_sink(directory: str | Path | None = None) -> Sink:
    """Sink that saves the workbook as ``<directory>/<file name>``."""

    def _save(workbook: Workbook, file_name: str) -> None:
        target_dir = Path(directory if directory is not None else _setting("EXPORT_DIR"))
        target_dir.mkdir(parents=True, exist_ok=True)
        workbook.save(target_dir / Path(file_name).name)

    return _save


class BufferSink:
    """Sink that keeps the workbook bytes in memory, e.g. for ``send_file``."""

    def __init__(self) -> None:
        self.buffer = io.BytesIO()
        self.file_name: str | None = None

    def __call__(self, workbook: Workbook, file_name: str) -> None:
        workbook.save(self.buffer)
        self.buffer.seek(0)
        self.file_name = file_name

    def getvalue(self) -> bytes:
        return self.buffer.getvalue()


def export_multi_sheet_xlsx(
    request: ExportRequest | Mapping[str, Any],
    *,
    sink: Sink | None = None,
    notify: Notifier | None = None,
) -> bool:
    log = _logger()
    alert = notify or _log_alert

    try:
        export_request = as_request(request)
        if not export_request.sheets:
            log.error("Export failed: at least one sheet configuration is required.")
            alert(NO_DATA_ALERT)
            return False

        file_name = export_request.file_name or default_file_name()
        sheets = build_sheets(export_request, logger=log)
        if not sheets:
            log.error("Export failed: no sheet has valid data after validation and filtering.")
            alert(NO_DATA_ALERT)
            return False

        target = f"{file_name}.xlsx"
        workbook = render_workbook(sheets)
        (sink or directory_sink())(workbook, target)
    except Exception:
        log.exception("xlsx export failed.")
        alert(WRITER_ALERT)
        return False

    log.info("Exported %s with sheets %s.", target, [sheet.name for sheet in sheets])
    return True


def export_single_sheet_xlsx(
    config: SheetSpec | Mapping[str, Any],
    *,
    file_name: str | None = None,
    sink: Sink | None = None,
    notify: Notifier | None = None,
) -> bool:
    """Export one sheet; ``sheet_name`` falls back to ``EXPORT_DEFAULT_SHEET_NAME``."""
    if isinstance(config, SheetSpec):
        sheet = config
        if sheet.sheet_name is None:
            sheet = replace(sheet, sheet_name=_setting("EXPORT_DEFAULT_SHEET_NAME"))
    else:
        values = dict(config)
        sheet_name = values.get("sheet_name", values.get("sheetName"))
        values["sheet_name"] = _setting("EXPORT_DEFAULT_SHEET_NAME") if sheet_name is None else sheet_name
        sheet = SheetSpec.from_mapping(values)
        if file_name is None:
            raw_file_name = values.get("file_name", values.get("fileName"))
            file_name = raw_file_name if isinstance(raw_file_name, str) and raw_file_name else None

    return export_multi_sheet_xlsx(
        ExportRequest(sheets=(sheet,), file_name=file_name),
        sink=sink,
        notify=notify,
    )


def _run_export(app, request, sink: Sink | None, notify: Notifier | None) -> bool:
    if app is None:
        return export_multi_sheet_xlsx(request, sink=sink, notify=notify)
    with app.app_context():
        return export_multi_sheet_xlsx(request, sink=sink, notify=notify)


def submit_export(
    request: ExportRequest | Mapping[str, Any],
    *,
    sink: Sink | None = None,
    notify: Notifier | None = None,
) -> Future:
    """Run an export on the background pool; the future resolves to its bool result."""
    try:
        app = current_app._get_current_object()
    except RuntimeError:
        app = None
    return _THREAD_POOL.submit(_run_export, app, request, sink, notify)


__all__ = [
    "BufferSink",
    "NO_DATA_ALERT",
    "Notifier",
    "Sink",
    "WRITER_ALERT",
    "build_sheets",
    "default_file_name",
    "directory_sink",
    "export_multi_sheet_xlsx",
    "export_single_sheet_xlsx",
    "submit_export",
    "validate_sheet",
]
