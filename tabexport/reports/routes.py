from flask import Blueprint, request, jsonify, send_file, abort, current_app

from ..export import BufferSink, export_multi_sheet_xlsx, export_single_sheet_xlsx
from ..utility.dates import date_range, days_diff, is_valid_date_format, range_for_preset

bp = Blueprint("reports", __name__, url_prefix="/reports")

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        abort(400, description="Expected a JSON object body.")
    return payload


def _send_export(run_export):
    """Run ``run_export(sink, notify)`` and turn its outcome into a response."""
    sink = BufferSink()
    alerts: list[str] = []

    if not run_export(sink, alerts.append) or sink.file_name is None:
        return jsonify({
            "success": False,
            "error": alerts[-1] if alerts else "Export failed.",
        }), 400

    return send_file(
        sink.buffer,
        as_attachment=True,
        download_name=sink.file_name,
        mimetype=XLSX_MIMETYPE,
    )


@bp.route("/xlsx", methods=["POST"])
def export_xlsx():
    """Export a multi-sheet workbook.

    Body: ``{"fileName": "...", "sheets": [{"sheetName": ..., "columns": [...], "data": [...]}]}``
    """
    payload = _json_body()
    return _send_export(
        lambda sink, notify: export_multi_sheet_xlsx(payload, sink=sink, notify=notify)
    )


@bp.route("/xlsx/single", methods=["POST"])
def export_xlsx_single():
    payload = _json_body()
    return _send_export(
        lambda sink, notify: export_single_sheet_xlsx(payload, sink=sink, notify=notify)
    )


@bp.route("/date-range/<preset>")
def preset_date_range(preset: str):
    selected = range_for_preset(preset)
    if selected is None:
        abort(404, description=f"Unknown date preset: {preset}")
    return jsonify(selected.as_dict())


@bp.route("/dates")
def list_dates():
    start = (request.args.get("start") or "").strip()
    end = (request.args.get("end") or "").strip()
    if not start or not end:
        abort(400, description="Both start and end are required (YYYY-MM-DD).")
    if not (is_valid_date_format(start) and is_valid_date_format(end)):
        abort(400, description="start and end must be YYYY-MM-DD dates.")
    max_span = current_app.config["DATES_MAX_SPAN_DAYS"]
    if days_diff(start, end) >= max_span:
        abort(400, description=f"Date ranges are limited to {max_span} days.")
    days = date_range(start, end)
    return jsonify({"start": start, "end": end, "dates": days})
