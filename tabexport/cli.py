"""Command line entry: export a JSON request file to an xlsx workbook."""

import argparse
import json
import logging
import sys

from .config import Config
from .export import directory_sink, export_multi_sheet_xlsx


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="tabexport",
        description="Export a JSON sheet configuration ({fileName, sheets: [...]}) to an .xlsx file.",
    )
    ap.add_argument("request", help="Path to the JSON export request ('-' reads stdin)")
    ap.add_argument("--out-dir", dest="out_dir", default=Config.EXPORT_DIR, help=f"Output directory (default: {Config.EXPORT_DIR})")
    ap.add_argument("--file-name", dest="file_name", default=None, help="Override the request's fileName (without .xlsx)")
    ap.add_argument("--log-level", dest="log_level", default=Config.LOG_LEVEL, help=f"Logging level (default: {Config.LOG_LEVEL})")
    return ap


def _load_request(path: str) -> dict:
    if path == "-":
        return json.load(sys.stdin)
    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        payload = _load_request(args.request)
    except (OSError, ValueError) as exc:
        print(f"ERROR: cannot read export request {args.request}: {exc}", file=sys.stderr)
        return 2
    if not isinstance(payload, dict):
        print("ERROR: the export request must be a JSON object.", file=sys.stderr)
        return 2

    if args.file_name:
        payload = {**payload, "fileName": args.file_name}

    def _alert(message: str) -> None:
        print(f"ERROR: {message}", file=sys.stderr)

    ok = export_multi_sheet_xlsx(payload, sink=directory_sink(args.out_dir), notify=_alert)
    if ok:
        print(f"Exported -> {args.out_dir}")
    return 0 if ok else 1
