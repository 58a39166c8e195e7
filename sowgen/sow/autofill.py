from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from ..excel.normalize import format_quantity
from ..models.bom import LineItem

"""BOM auto-fill: derive scope-of-work variables from parsed line items.

Each category is one ``CategoryRule`` record evaluated in order. Any extra
disambiguation a category needs (switch vs. injector, camera vs. camera license)
lives on its record as an ``accept`` predicate.
"""

__all__ = [
    "CATEGORY_RULES",
    "KNOWN_VENDORS",
    "CategoryRule",
    "auto_fill_from_bom",
    "item_vendor",
    "keyword_match",
    "merge_auto_fill",
]

logger = logging.getLogger(__name__)

_SHORT_KEYWORD = 3


def keyword_match(keyword: str, text: str) -> bool:
    """Substring match; keywords of three characters or fewer must start a word."""
    if len(keyword) <= _SHORT_KEYWORD:
        return re.search(r"(?<![a-z0-9])" + re.escape(keyword), text) is not None
    return keyword in text


def _any(keywords: Iterable[str], text: str) -> bool:
    return any(keyword_match(k, text) for k in keywords)


@dataclass(frozen=True)
class CategoryRule:
    name: str
    keywords: tuple[str, ...]
    count_variables: tuple[str, ...] = ()
    brand_variable: str | None = None
    description_variable: str | None = None  # first matched description, e.g. VMS_PLATFORM
    fields: tuple[str, ...] = ("description", "part_number")
    # (description, part_number) -> bool, both lowercased; applied after keywords
    accept: Callable[[str, str], bool] | None = None
    # matches even without a keyword hit
    extra_match: Callable[[str, str], bool] | None = None

    def matches(self, item: LineItem) -> bool:
        desc = (item.description or "").lower()
        pn = (item.part_number or "").lower()
        texts = [desc if f == "description" else pn for f in self.fields]
        hit = any(_any(self.keywords, t) for t in texts)
        if not hit and self.extra_match is not None:
            hit = self.extra_match(desc, pn)
        if hit and self.accept is not None:
            hit = self.accept(desc, pn)
        return hit


LICENSE_KEYWORDS = ("license", "licence", "subscription", "lic")
CAMERA_LICENSE_KEYWORDS = ("camera license", "channel license", "cam license", "device license")
MOUNT_KEYWORDS = (
    "mount", "bracket", "wall arm", "pendant", "pole adapter", "junction box", "j-box",
    "wall mount", "corner", "gooseneck", "parapet",
)


def _not_camera_accessory(desc: str, pn: str) -> bool:
    return not (_any(LICENSE_KEYWORDS, desc) or _any(MOUNT_KEYWORDS, desc))


def _is_poe_switch(desc: str, pn: str) -> bool:
    return "switch" in desc


def _poe_and_switch(desc: str, pn: str) -> bool:
    return "switch" in desc and "poe" in desc


def _not_switch(desc: str, pn: str) -> bool:
    return "switch" not in desc


CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(
        name="cameras",
        keywords=(
            "camera", "cam", "dome", "bullet", "turret", "ptz", "ip cam", "fisheye", "panoramic",
            "multisensor", "multi-sensor", "fixed dome", "fixed lens", "mini dome", "box cam",
            "wedge", "vandal", "eyeball",
        ),
        count_variables=("NEW_CAMERA_TOTAL", "CAMERA_COUNT"),
        brand_variable="CAMERA_BRAND",
        accept=_not_camera_accessory,
    ),
    CategoryRule(
        name="cabling",
        keywords=("cat6", "cat 6", "cable", "cat5", "cat 5", "utp", "ethernet"),
        count_variables=("CAT6_COUNT",),
    ),
    CategoryRule(
        name="point_to_point",
        keywords=(
            "point-to-point", "point to point", "ptp", "wireless bridge", "airfiber",
            "nanobeam", "nanostation", "litebeam",
        ),
        count_variables=("PTP_COUNT",),
    ),
    CategoryRule(name="licenses", keywords=LICENSE_KEYWORDS, count_variables=("LICENSE_COUNT",)),
    CategoryRule(
        name="poe_switches",
        keywords=("poe switch", "poe+ switch", "network switch", "managed switch", "unmanaged switch"),
        count_variables=("POE_SWITCH_COUNT",),
        fields=("description",),
        accept=_is_poe_switch,
        extra_match=_poe_and_switch,
    ),
    CategoryRule(
        name="poe_injectors",
        keywords=(
            "poe injector", "poe adapter", "midspan", "injector", "u-poe", "ins-3af",
            "poe-24", "poe-48", "poe-54",
        ),
        count_variables=("POE_INJECTOR_COUNT",),
        accept=_not_switch,
    ),
    CategoryRule(name="mounts", keywords=MOUNT_KEYWORDS, count_variables=("MOUNT_COUNT",)),
    CategoryRule(
        name="servers",
        keywords=("server", "nvr", "recorder", "recording server"),
        count_variables=("SERVER_TOTAL", "NVR_COUNT"),
        brand_variable="SERVER_BRAND",
    ),
    CategoryRule(
        name="vms",
        keywords=("vms", "milestone", "genetec", "exacq", "wisenet wave", "nx witness", "video management"),
        description_variable="VMS_PLATFORM",
    ),
    CategoryRule(name="camera_licenses", keywords=CAMERA_LICENSE_KEYWORDS, count_variables=("CAMERA_LICENSES",)),
    # access control
    CategoryRule(
        name="controllers",
        keywords=("door controller", "access controller", "controller", "lp1502", "lp4502", "mr52", "acm"),
        count_variables=("CONTROLLER_COUNT",),
        brand_variable="CONTROLLER_BRAND",
    ),
    CategoryRule(
        name="intercoms",
        keywords=("intercom", "door station", "video entry", "call station"),
        count_variables=("INTERCOM_TOTAL",),
        brand_variable="INTERCOM_BRAND",
    ),
    CategoryRule(
        name="readers",
        keywords=("card reader", "reader", "signo", "iclass", "proximity"),
        count_variables=("NEW_READER_COUNT",),
        brand_variable="READER_BRAND",
        accept=lambda desc, pn: "license" not in desc,
    ),
    CategoryRule(name="electric_strikes", keywords=("electric strike", "strike"), count_variables=("ELECTRIC_STRIKE_COUNT",)),
    CategoryRule(name="maglocks", keywords=("maglock", "mag lock", "magnetic lock", "electromagnetic lock"), count_variables=("MAGLOCK_COUNT",)),
    CategoryRule(
        name="motorized_latches",
        keywords=("motorized latch", "latch retraction", "electrified latch", "mlr", "exit device"),
        count_variables=("MOTORIZED_LATCH_COUNT",),
    ),
    CategoryRule(
        name="power_transfers",
        keywords=("power transfer", "electric hinge", "door loop", "armored loop", "electrified hinge"),
        count_variables=("POWER_TRANSFER_COUNT",),
    ),
    CategoryRule(name="dps", keywords=("door position", "door contact", "dps"), count_variables=("DPS_COUNT",)),
    CategoryRule(name="rex", keywords=("request to exit", "request-to-exit", "rex", "pir"), count_variables=("REX_COUNT",)),
    CategoryRule(
        name="push_buttons",
        keywords=("push to exit", "push-to-exit", "exit button", "push button"),
        count_variables=("PUSH_COUNTS",),
    ),
    CategoryRule(
        name="power_supplies",
        keywords=("power supply", "power supplies", "psu", "altronix", "lifesafety power"),
        count_variables=("POWER_SUPPLY_COUNT",),
    ),
)

# Categories that add up to LOCK_TOTAL.
LOCK_CATEGORIES = ("electric_strikes", "maglocks", "motorized_latches")

KNOWN_VENDORS: tuple[str, ...] = (
    "Axis", "Hanwha", "Avigilon", "Verkada", "Hikvision", "Uniview", "Bosch", "Pelco",
    "Vivotek", "i-PRO", "Milestone", "Genetec", "Exacq", "Ubiquiti", "Cisco", "Meraki",
    "Dell", "BCD", "HID", "Mercury", "LenelS2", "Brivo", "Aiphone", "2N", "Altronix",
    "Securitron", "HES", "Von Duprin", "Schlage",
)


def item_vendor(item: LineItem) -> str | None:
    """Vendor column when present, else a known manufacturer named in the description."""
    if item.vendor:
        return item.vendor.strip()
    desc = item.description.lower()
    for vendor in KNOWN_VENDORS:
        if re.search(r"(?<![a-z0-9])" + re.escape(vendor.lower()) + r"(?![a-z0-9])", desc):
            return vendor
    return None


def _plurality_vendor(items: list[LineItem]) -> str | None:
    tally: Counter[str] = Counter()
    for item in items:
        vendor = item_vendor(item)
        if vendor:
            tally[vendor] += item.quantity or 0
    if not tally:
        return None
    # Counter.most_common keeps first-seen order on ties
    vendor, qty = tally.most_common(1)[0]
    return vendor if qty > 0 else None


def auto_fill_from_bom(items: Iterable[LineItem]) -> dict[str, str]:
    """Compute variable values from line items.

    Only non-zero counts and non-empty names are emitted, so the result never
    carries a value that would blank out a line in the scope text.
    """
    items = list(items)
    values: dict[str, str] = {}
    totals: dict[str, float] = {}
    for rule in CATEGORY_RULES:
        matched = [item for item in items if rule.matches(item)]
        total = sum(item.quantity or 0 for item in matched)
        totals[rule.name] = total
        if total > 0:
            for var in rule.count_variables:
                values[var] = format_quantity(total)
        if rule.brand_variable and matched:
            vendor = _plurality_vendor(matched)
            if vendor:
                values[rule.brand_variable] = vendor
        if rule.description_variable and matched:
            first = matched[0].description or item_vendor(matched[0]) or ""
            if first:
                values[rule.description_variable] = first
        logger.debug(f"auto-fill {rule.name}: {len(matched)} items, qty={total}")

    lock_total = sum(totals.get(name, 0) for name in LOCK_CATEGORIES)
    if lock_total > 0:
        values["LOCK_TOTAL"] = format_quantity(lock_total)
    return values


def merge_auto_fill(variables: Mapping[str, str], auto: Mapping[str, str]) -> dict[str, str]:
    """Fill only variables that are currently empty; user values always win."""
    merged = dict(variables)
    for key, value in auto.items():
        if value and not (merged.get(key) or "").strip():
            merged[key] = value
    return merged
