from __future__ import annotations

import pytest

from sowgen.excel.column_mapper import detect_columns
from sowgen.excel.extractor import (
    BomParseError,
    EmptySpreadsheetError,
    NoItemsFoundError,
    build_scope_text,
    extract_items,
    extract_metadata,
    is_total_row,
    merge_metadata,
    parse_bom,
    parse_workbook,
)
from sowgen.excel.reader import CellGrid
from sowgen.models.bom import LineItem
from sowgen.models.project import ProjectInfo


def _grid(rows, name="BOM"):
    return CellGrid.from_rows(name, rows)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Subtotal", True),
        ("Grand Total", True),
        ("TOTAL", True),
        ("Total Labor", True),
        ("Total Station Mount", True),  # short description containing "total" is dropped
        ("Dome Camera", False),
        ("Totally weatherproof outdoor enclosure", False),
    ],
)
def test_is_total_row(text, expected):
    assert is_total_row(text) is expected


def test_extract_items_with_detected_header(scenario_rows):
    grid = _grid(scenario_rows)
    items = extract_items(grid, detect_columns(grid))
    assert items == [
        LineItem(description="Dome Camera X1", quantity=4, part_number="CAM-100"),
        LineItem(description="Cat6 Cable 1000ft", quantity=2, part_number="CBL-6"),
    ]


def test_extract_items_positional_defaults_skip_title_row():
    grid = _grid([["Camera Upgrade", None], [4, "Dome Camera"], ["", "Cable"], [None, None]])
    items = extract_items(grid, None)
    assert [i.description for i in items] == ["Dome Camera", "Cable"]
    assert items[0].quantity == 4
    # unparsable quantity becomes 0
    assert items[1].quantity == 0


def test_extract_items_prices_vendor_and_undefined_cells():
    grid = _grid(
        [
            ["Manufacturer", "Description", "Qty", "Unit Price", "Ext Price", "Model"],
            ["Axis", "P3265 Dome", "3", "$1,200.00", "3,600.00", "undefined"],
            [None, "undefined", 1, None, None, None],
        ]
    )
    items = extract_items(grid, detect_columns(grid))
    assert len(items) == 1
    item = items[0]
    assert item.vendor == "Axis"
    assert item.quantity == 3.0
    assert item.unit_price == pytest.approx(1200.0)
    assert item.total_price == pytest.approx(3600.0)
    assert item.part_number is None


def test_extract_items_without_description_header_uses_text_column():
    grid = _grid([["Qty", "Part #", None], [4, "CAM-100", "Dome Camera X1"], [2, "CBL-6", "Cat6 Cable"]])
    items = extract_items(grid, detect_columns(grid))
    assert [(i.description, i.quantity, i.part_number) for i in items] == [
        ("Dome Camera X1", 4, "CAM-100"),
        ("Cat6 Cable", 2, "CBL-6"),
    ]


def test_extract_items_without_any_text_column_yields_nothing():
    grid = _grid([["Qty", "Part #"], [1, "X"]])
    assert extract_items(grid, detect_columns(grid)) == []


def test_parse_workbook_name_header_is_description():
    grid = _grid([["Name", "Qty", "Part #"], ["Dome Camera X1", 4, "CAM-100"], ["Cat6 Cable", 2, "CBL-6"]])
    parsed = parse_workbook({"BOM": grid})
    assert [i.description for i in parsed.items] == ["Dome Camera X1", "Cat6 Cable"]


def test_extract_metadata_fixed_cells_and_labels():
    grid = _grid(
        [
            ["QUOTE", None],
            ["Opp #", "OPP-12345"],
            ["Customer Name", "Acme Corp"],
            ["Job Name", "Acme HQ"],
            ["Solution Architect", "J. Rivera"],
            ["Date", "3/7/2025"],
            ["City, State", "Austin, TX"],
        ]
    )
    meta = extract_metadata(grid)
    assert meta == {
        "oppNumber": "OPP-12345",
        "customerName": "Acme Corp",
        "projectName": "Acme HQ",
        "solutionArchitect": "J. Rivera",
        "date": "3/7/2025",
        "cityStateZip": "Austin, TX",
    }


def test_extract_metadata_labeled_cell_anywhere_in_region():
    grid = _grid(
        [
            [None, None, None, None],
            [None, None, "Project Name:", None, "Warehouse Cameras"],
        ]
    )
    assert extract_metadata(grid) == {"projectName": "Warehouse Cameras"}


def test_extract_metadata_opp_pattern_is_normalized():
    grid = _grid([["Quote for opp 98765 - rev B"]])
    assert extract_metadata(grid) == {"oppNumber": "OPP-98765"}


def test_extract_metadata_respects_already_found_fields():
    grid = _grid([[None, None], [None, None], ["Customer", "Other Co"]])
    assert extract_metadata(grid, {"customerName": "Acme"}) == {}


def test_item_text_is_not_mistaken_for_a_label():
    grid = _grid([["Project Management", "8"]])
    assert extract_metadata(grid) == {}


def test_parse_workbook_longest_item_list_wins(scenario_rows):
    labor = _grid([["Description", "Qty"], ["Install labor", 16]], name="Labor")
    material = _grid(scenario_rows, name="Material")
    bom = parse_workbook({"Labor": labor, "Material": material})
    assert bom.sheet_name == "Material"
    assert len(bom.items) == 2
    assert bom.scope_text == "• 4x Dome Camera X1 (CAM-100)\n• 2x Cat6 Cable 1000ft (CBL-6)"


def test_parse_workbook_empty_and_no_items():
    with pytest.raises(EmptySpreadsheetError):
        parse_workbook({"Sheet1": _grid([[None, None]])})
    with pytest.raises(NoItemsFoundError) as exc:
        parse_workbook({"Sheet1": _grid([["Notes only"]])})
    assert "description" in str(exc.value)


def test_parse_bom_from_bytes(make_workbook, scenario_rows):
    bom = parse_bom(make_workbook({"BOM": scenario_rows}))
    assert [i.part_number for i in bom.items] == ["CAM-100", "CBL-6"]
    assert bom.column_map is not None and bom.column_map.header_row == 0


def test_parse_bom_rejects_non_workbook():
    with pytest.raises(BomParseError):
        parse_bom(b"definitely not a spreadsheet")


def test_build_scope_text_formats_quantities():
    text = build_scope_text([LineItem("Bracket", 2.0), LineItem("Cable", 1.5, "C-1")])
    assert text == "• 2x Bracket\n• 1.5x Cable (C-1)"


def test_merge_metadata_never_overwrites_user_values():
    info = ProjectInfo(project_name="User Name", company_name="")
    updates = merge_metadata(info, {"projectName": "From Sheet", "customerName": "Acme", "unknown": "x"})
    assert updates == {"company_name": "Acme"}


def test_merge_metadata_fills_date_when_user_left_it_empty():
    updates = merge_metadata(ProjectInfo(), {"date": "1/2/2024", "oppNumber": "OPP-1"})
    assert updates == {"date": "1/2/2024", "opp_number": "OPP-1"}
    assert merge_metadata(ProjectInfo(date="5/6/2025"), {"date": "1/2/2024"}) == {}
