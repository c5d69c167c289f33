import io

import pytest
from openpyxl import load_workbook

from tabexport import create_app
from tabexport.export.service import NO_DATA_ALERT


@pytest.fixture()
def app():
    app = create_app("testing")
    app.config.update(TESTING=True)
    yield app


@pytest.fixture()
def client(app):
    return app.test_client()


def _payload():
    return {
        "fileName": "orders",
        "sheets": [
            {
                "sheetName": "Orders",
                "columns": [
                    {"key": "id", "title": "Order", "type": "number", "decimalPlaces": 0},
                    {"key": "customer.name", "title": "Customer", "width": 20},
                    {"key": "total", "title": "Total", "type": "number"},
                    {"key": "placed", "title": "Placed", "type": "date"},
                ],
                "data": [
                    {"id": 1, "customer": {"name": "Ada"}, "total": "19.999", "placed": "2024-02-29"},
                    {"id": 2, "customer": None, "total": 5, "placed": ""},
                ],
            },
            {
                "sheetName": "Orders",
                "columns": [{"key": "id", "title": "Order"}],
                "data": [{"id": 3}],
            },
        ],
    }


def test_export_xlsx_returns_attachment(client):
    resp = client.post("/reports/xlsx", json=_payload())

    assert resp.status_code == 200
    assert resp.mimetype == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert "orders.xlsx" in resp.headers["Content-Disposition"]

    workbook = load_workbook(io.BytesIO(resp.data))
    assert workbook.sheetnames == ["Orders", "Orders_2"]
    sheet = workbook["Orders"]
    assert sheet["C2"].value == 20
    assert sheet["C3"].value == 5
    assert sheet["B2"].value == "Ada"


def test_export_xlsx_reports_total_failure(client):
    resp = client.post("/reports/xlsx", json={"sheets": []})

    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "error": NO_DATA_ALERT}


def test_export_xlsx_rejects_non_json_body(client):
    resp = client.post("/reports/xlsx", data="not json", content_type="text/plain")

    assert resp.status_code == 400


def test_export_single_sheet_route_uses_default_sheet_name(client):
    resp = client.post("/reports/xlsx/single", json={
        "fileName": "single",
        "columns": [{"key": "name", "title": "Name"}],
        "data": [{"name": "Grace"}],
    })

    assert resp.status_code == 200
    workbook = load_workbook(io.BytesIO(resp.data))
    assert workbook.sheetnames == ["Data Report"]
    assert workbook["Data Report"]["A2"].value == "Grace"


def test_date_range_preset(client):
    resp = client.get("/reports/date-range/today")

    assert resp.status_code == 200
    body = resp.get_json()
    assert set(body) == {"startTime", "endTime"}
    assert body["startTime"] == body["endTime"]


def test_date_range_unknown_preset_is_404(client):
    assert client.get("/reports/date-range/nextDecade").status_code == 404


def test_list_dates(client):
    resp = client.get("/reports/dates?start=2025-12-01&end=2025-12-03")

    assert resp.status_code == 200
    assert resp.get_json()["dates"] == ["2025-12-01", "2025-12-02", "2025-12-03"]


def test_list_dates_validates_input(client):
    assert client.get("/reports/dates?start=2025-12-01").status_code == 400
    assert client.get("/reports/dates?start=12/01/2025&end=2025-12-03").status_code == 400


def test_list_dates_up_to_the_last_calendar_day(client):
    resp = client.get("/reports/dates?start=9999-12-30&end=9999-12-31")

    assert resp.status_code == 200
    assert resp.get_json()["dates"] == ["9999-12-30", "9999-12-31"]


def test_list_dates_rejects_spans_over_the_configured_limit(client):
    assert client.get("/reports/dates?start=0001-01-01&end=9999-12-31").status_code == 400
    assert client.get("/reports/dates?start=2020-01-01&end=2029-12-31").status_code == 200
