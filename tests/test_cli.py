import json

from openpyxl import load_workbook

from tabexport.cli import main


def _write_request(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_cli_exports_request_file(tmp_path):
    request_file = _write_request(tmp_path / "request.json", {
        "fileName": "inventory",
        "sheets": [{
            "sheetName": "Stock",
            "columns": [
                {"key": "sku", "title": "SKU"},
                {"key": "qty", "title": "Qty", "type": "number", "decimalPlaces": 0},
            ],
            "data": [{"sku": "A-1", "qty": "4"}],
        }],
    })
    out_dir = tmp_path / "out"

    assert main([str(request_file), "--out-dir", str(out_dir)]) == 0

    sheet = load_workbook(out_dir / "inventory.xlsx")["Stock"]
    assert sheet["A2"].value == "A-1"
    assert sheet["B2"].value == 4


def test_cli_file_name_override(tmp_path):
    request_file = _write_request(tmp_path / "request.json", {
        "sheets": [{"sheetName": "S", "columns": [{"key": "a", "title": "A"}], "data": [{"a": 1}]}],
    })

    assert main([str(request_file), "--out-dir", str(tmp_path), "--file-name", "renamed"]) == 0
    assert (tmp_path / "renamed.xlsx").exists()


def test_cli_returns_1_when_nothing_exports(tmp_path, capsys):
    request_file = _write_request(tmp_path / "request.json", {"sheets": []})

    assert main([str(request_file), "--out-dir", str(tmp_path / "out")]) == 1
    assert "ERROR:" in capsys.readouterr().err
    assert not (tmp_path / "out").exists()


def test_cli_returns_2_for_unreadable_input(tmp_path):
    assert main([str(tmp_path / "missing.json")]) == 2
    assert main([str(_write_request(tmp_path / "list.json", [1, 2]))]) == 2
