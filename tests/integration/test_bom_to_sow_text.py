from __future__ import annotations

from sowgen.excel.extractor import parse_bom
from sowgen.sow.autofill import auto_fill_from_bom, merge_auto_fill
from sowgen.sow.engine import generate_sow_text
from sowgen.sow.templates import catalog_ids


def test_bom_items_feed_auto_fill_and_scope_text(make_workbook, scenario_rows):
    bom = parse_bom(make_workbook({"Sheet1": scenario_rows}))
    assert len(bom.items) == 2
    assert bom.items[0].description == "Dome Camera X1"
    assert bom.items[0].quantity == 4
    assert bom.items[0].part_number == "CAM-100"

    variables = auto_fill_from_bom(bom.items)
    assert variables["NEW_CAMERA_TOTAL"] == "4"
    assert variables["CAT6_COUNT"] == "2"

    text = generate_sow_text(catalog_ids(), {"install_cameras", "provide_cabling"}, variables)
    assert text.startswith("1. Install Cameras according to hardware schedule\n\n")
    # counts the BOM cannot know are left out of the narrative
    assert "exterior cameras" not in text
    assert "interior cameras" not in text
    assert "2. Provide Cat6 Cabling" in text
    assert "    Provide and install 2 new Cat6 data cables." in text


def test_user_counts_bring_optional_lines_back(make_workbook, scenario_rows):
    bom = parse_bom(make_workbook({"Sheet1": scenario_rows}))
    variables = merge_auto_fill(
        {"EXTERIOR_CAMERA_COUNT": "3", "INTERIOR_CAMERA_COUNT": "1", "CAMERA_BRAND": "Axis"},
        auto_fill_from_bom(bom.items),
    )
    text = generate_sow_text(["install_cameras"], {"install_cameras"}, variables)
    assert "    Mount 4 new Axis cameras, consisting of:" in text
    assert "    3 exterior cameras" in text
    assert "    1 interior cameras" in text


def test_positional_sheet_with_title_block(make_workbook):
    data = make_workbook(
        {
            "Quote": [
                ["Camera refresh", None],
                [6, "Bullet camera 4MP"],
                [1, "16-port PoE switch"],
                ["Total", None],
            ]
        }
    )
    bom = parse_bom(data)
    assert bom.column_map is None
    assert [i.description for i in bom.items] == ["Bullet camera 4MP", "16-port PoE switch"]
    variables = auto_fill_from_bom(bom.items)
    assert variables["NEW_CAMERA_TOTAL"] == "6"
    assert variables["POE_SWITCH_COUNT"] == "1"
