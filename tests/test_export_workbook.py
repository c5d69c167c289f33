from datetime import datetime

from tabexport.export.specs import ColumnSpec, SheetSpec
from tabexport.export.workbook import (
    AssembledSheet,
    assemble_sheet,
    format_code_for,
    render_workbook,
    resolve_sheet_name,
    sanitize_sheet_name,
)


def _sheet(name="Staff", rows=None):
    return AssembledSheet(
        name=name,
        headers=["ID", "Salary", "Joined", "Name"],
        rows=rows if rows is not None else [
            {"ID": 1, "Salary": 15000, "Joined": datetime(2023, 1, 15), "Name": "Ada"},
            {"ID": 2, "Salary": 18000.5, "Joined": "", "Name": "bad\x07value"},
        ],
        widths=[10, 14, 16, 12],
        formats=["0", "#,##0.##", "yyyy-mm-dd", "@"],
    )


def test_format_code_for_each_column_type():
    assert format_code_for(ColumnSpec(title="Id", type="number", decimal_places=0)) == "0"
    assert format_code_for(ColumnSpec(title="Pay", type="number")) == "#,##0.##"
    assert format_code_for(ColumnSpec(title="Rate", type="number", decimal_places=4)) == "#,##0.####"
    assert format_code_for(ColumnSpec(title="Day", type="date")) == "yyyy-mm-dd"
    assert format_code_for(
        ColumnSpec(title="At", type="date", date_format="yyyy-mm-dd hh:mm:ss")
    ) == "yyyy-mm-dd hh:mm:ss"
    assert format_code_for(ColumnSpec(title="Name")) == "@"
    assert format_code_for(ColumnSpec(title="Odd", type="currency")) == "@"


def test_resolve_sheet_name_suffixes_duplicates_with_position():
    used: set[str] = set()

    assert resolve_sheet_name("Report", 1, used) == "Report"
    assert resolve_sheet_name("Report", 2, used) == "Report_2"
    assert resolve_sheet_name("report", 3, used) == "report_3"
    assert used == {"report", "report_2", "report_3"}


def test_resolve_sheet_name_counts_up_when_suffix_taken():
    used = {"report", "report_3"}

    assert resolve_sheet_name("Report", 3, used) == "Report_4"


def test_sheet_names_are_made_valid_for_excel():
    assert sanitize_sheet_name("Q1/Q2 [draft]") == "Q1_Q2 _draft_"
    assert sanitize_sheet_name("   ") == "Sheet"
    assert sanitize_sheet_name("Bad\x07Name") == "BadName"
    assert sanitize_sheet_name(" 'Quoted' ") == "Quoted"

    long_name = "x" * 40
    used: set[str] = set()
    first = resolve_sheet_name(long_name, 1, used)
    second = resolve_sheet_name(long_name, 2, used)

    assert first == "x" * 31
    assert len(second) == 31
    assert second.endswith("_2")


def test_assemble_sheet_uses_column_widths_and_logs_renames(caplog):
    sheet = SheetSpec(
        sheet_name="Report",
        columns=(
            ColumnSpec(title="ID", type="number", decimal_places=0, width=10),
            ColumnSpec(title="Name"),
        ),
        data=({"ID": 1},),
    )
    used = {"report"}

    with caplog.at_level("WARNING"):
        assembled = assemble_sheet(sheet, [{"ID": 1, "Name": "Ada"}], position=2, used_names=used, default_width=12)

    assert assembled.name == "Report_2"
    assert assembled.headers == ["ID", "Name"]
    assert assembled.widths == [10, 12]
    assert assembled.formats == ["0", "@"]
    assert assembled.matrix() == [["ID", "Name"], [1, "Ada"]]
    assert "exporting it as 'Report_2'" in caplog.text


def test_assemble_sheet_prefers_sheet_level_widths():
    sheet = SheetSpec(
        sheet_name="Widths",
        columns=(ColumnSpec(title="A", width=30), ColumnSpec(title="B")),
        data=({},),
        column_widths=[8, 0],
    )

    assembled = assemble_sheet(sheet, [], position=1, used_names=set(), default_width=12)

    assert assembled.widths == [8, 12]


def test_render_workbook_writes_headers_values_and_formats():
    workbook = render_workbook([_sheet(), _sheet(name="Staff_2", rows=[])])

    assert workbook.sheetnames == ["Staff", "Staff_2"]
    sheet = workbook["Staff"]

    assert [cell.value for cell in sheet[1]] == ["ID", "Salary", "Joined", "Name"]
    assert sheet["A2"].value == 1
    assert sheet["B3"].value == 18000.5
    assert sheet["C2"].value == datetime(2023, 1, 15)
    assert sheet["D3"].value == "badvalue"

    assert sheet["A2"].number_format == "0"
    assert sheet["B2"].number_format == "#,##0.##"
    assert sheet["C2"].number_format == "yyyy-mm-dd"
    assert sheet["D2"].number_format == "@"

    assert sheet.column_dimensions["A"].width == 10
    assert sheet.column_dimensions["C"].width == 16
    assert sheet.freeze_panes == "A2"


def test_render_workbook_without_header_freeze():
    workbook = render_workbook([_sheet()], freeze_header=False)

    assert workbook["Staff"].freeze_panes is None
