from __future__ import annotations

from sowgen.models.bom import LineItem
from sowgen.sow.autofill import auto_fill_from_bom, item_vendor, keyword_match, merge_auto_fill


def test_keyword_match_short_keywords_need_word_start():
    assert keyword_match("cam", "ip cam 4mp")
    assert not keyword_match("cam", "webcam holder")
    assert keyword_match("camera", "minicamera")
    assert not keyword_match("pir", "spiral wrap")


def test_cameras_and_cabling_counts():
    values = auto_fill_from_bom(
        [
            LineItem("Dome Camera X1", 4, "CAM-100"),
            LineItem("Bullet camera 4MP", 2),
            LineItem("Cat6 Cable 1000ft", 2, "CBL-6"),
        ]
    )
    assert values["NEW_CAMERA_TOTAL"] == "6"
    assert values["CAMERA_COUNT"] == "6"
    assert values["CAT6_COUNT"] == "2"
    assert "PTP_COUNT" not in values


def test_camera_mounts_and_licenses_are_not_cameras():
    values = auto_fill_from_bom(
        [
            LineItem("Dome camera", 3),
            LineItem("Camera wall mount bracket", 3),
            LineItem("Camera license 1yr", 3),
        ]
    )
    assert values["NEW_CAMERA_TOTAL"] == "3"
    assert values["MOUNT_COUNT"] == "3"
    assert values["CAMERA_LICENSES"] == "3"
    assert values["LICENSE_COUNT"] == "3"


def test_switch_versus_injector():
    values = auto_fill_from_bom(
        [
            LineItem("24-port PoE switch", 1),
            LineItem("PoE injector 30W", 2),
        ]
    )
    assert values["POE_SWITCH_COUNT"] == "1"
    assert values["POE_INJECTOR_COUNT"] == "2"


def test_brand_is_plurality_by_quantity():
    values = auto_fill_from_bom(
        [
            LineItem("Dome camera", 2, vendor="Hanwha"),
            LineItem("Axis P3265 dome camera", 5),
            LineItem("Bullet camera", 1, vendor="Hanwha"),
        ]
    )
    assert values["CAMERA_BRAND"] == "Axis"


def test_lock_total_sums_lock_categories():
    values = auto_fill_from_bom(
        [
            LineItem("Electric strike 12V", 2),
            LineItem("Maglock 1200lb", 1),
            LineItem("Exit device with latch retraction", 1),
        ]
    )
    assert values["ELECTRIC_STRIKE_COUNT"] == "2"
    assert values["MAGLOCK_COUNT"] == "1"
    assert values["MOTORIZED_LATCH_COUNT"] == "1"
    assert values["LOCK_TOTAL"] == "4"


def test_vms_platform_takes_first_description():
    values = auto_fill_from_bom([LineItem("Milestone XProtect Professional+", 1), LineItem("Genetec Omnicast", 1)])
    assert values["VMS_PLATFORM"] == "Milestone XProtect Professional+"


def test_zero_quantities_emit_nothing():
    assert auto_fill_from_bom([LineItem("Dome camera", 0)]) == {}
    assert auto_fill_from_bom([]) == {}


def test_item_vendor():
    assert item_vendor(LineItem("x", 1, vendor=" Bosch ")) == "Bosch"
    assert item_vendor(LineItem("HID Signo reader", 1)) == "HID"
    assert item_vendor(LineItem("Generic dome", 1)) is None


def test_merge_auto_fill_user_values_win():
    merged = merge_auto_fill({"CAT6_COUNT": "10", "CAMERA_BRAND": " "}, {"CAT6_COUNT": "2", "CAMERA_BRAND": "Axis", "X": ""})
    assert merged == {"CAT6_COUNT": "10", "CAMERA_BRAND": "Axis"}
