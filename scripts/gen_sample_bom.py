#!/usr/bin/env python3
"""Sample BOM workbook generator.

Generates synthetic quote workbooks for trying the parser and the generator:
- Rows 1-7: quote header block (Opp #, Customer Name, Job Name, ...)
- Row 9: material list header (Qty, Description, Part #, Manufacturer, Unit Price, Total)
- Row 10+: line items followed by a Subtotal row
- Optional second sheet with labor lines, shorter than the material list
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

CATALOG: list[tuple[str, str, str, float]] = [
    ("Axis P3265-LVE Fixed Dome Camera", "AXS-P3265", "Axis", 689.00),
    ("Axis Q6135-LE PTZ Camera", "AXS-Q6135", "Axis", 3125.00),
    ("Hanwha XNO-8082R Bullet Camera", "HAN-XNO8082", "Hanwha", 512.50),
    ("Axis T94N01G Pendant Mount", "AXS-T94N01G", "Axis", 95.00),
    ("Cat6 Plenum Cable 1000ft", "CBL-CAT6P", "Belden", 289.99),
    ("24-Port PoE+ Managed Switch", "SW-24POE", "Cisco", 1450.00),
    ("PoE Injector 30W", "INJ-30W", "Ubiquiti", 29.00),
    ("Milestone XProtect Device License", "MIL-XPPDL", "Milestone", 245.00),
    ("NVR Recording Server 32TB", "SRV-NVR32", "Dell", 6800.00),
    ("HID Signo 20 Card Reader", "HID-SIG20", "HID", 210.00),
    ("Mercury LP1502 Door Controller", "MER-LP1502", "Mercury", 1195.00),
    ("HES 9600 Electric Strike", "HES-9600", "HES", 310.00),
    ("Altronix Power Supply 12/24VDC", "ALT-AL600", "Altronix", 225.00),
]

LABOR: list[tuple[str, float]] = [
    ("Installation Labor", 95.0),
    ("Programming and Commissioning", 125.0),
]


def generate_items(rows: int, seed: int = 42) -> pd.DataFrame:
    """Pick ``rows`` catalog lines with random quantities.

    Args:
        rows: number of line items (capped at the catalog size)
        seed: random seed for reproducible output

    Returns:
        DataFrame with Qty, Description, Part #, Manufacturer, Unit Price, Total
    """
    rng = np.random.default_rng(seed)
    count = min(rows, len(CATALOG))
    picks = rng.choice(len(CATALOG), size=count, replace=False)
    quantities = rng.integers(1, 25, size=count)
    data: dict[str, list[Any]] = {
        "Qty": [], "Description": [], "Part #": [], "Manufacturer": [], "Unit Price": [], "Total": [],
    }
    for idx, qty in zip(sorted(picks), quantities):
        desc, pn, vendor, price = CATALOG[idx]
        data["Qty"].append(int(qty))
        data["Description"].append(desc)
        data["Part #"].append(pn)
        data["Manufacturer"].append(vendor)
        data["Unit Price"].append(price)
        data["Total"].append(round(price * int(qty), 2))
    return pd.DataFrame(data)


def _header_block(opp: str, customer: str, project: str) -> list[list[Any]]:
    return [
        ["QUOTE", "", "", "", "", ""],
        ["Opp #", opp, "", "", "", ""],
        ["Customer Name", customer, "", "", "", ""],
        ["Job Name", project, "", "", "", ""],
        ["Solution Architect", "J. Rivera", "", "", "", ""],
        ["Date", "3/7/2025", "", "", "", ""],
        ["City, State", "Springfield, IL 62701", "", "", "", ""],
        ["", "", "", "", "", ""],
    ]


def create_bom_file(
    output_path: Path,
    rows: int,
    opp: str = "OPP-12345",
    customer: str = "Acme Corp",
    project: str = "Acme HQ",
    with_labor: bool = True,
    seed: int = 42,
) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    items = generate_items(rows, seed)

    sheet: list[list[Any]] = _header_block(opp, customer, project)
    sheet.append(items.columns.tolist())
    for _, row in items.iterrows():
        sheet.append(row.tolist())
    sheet.append(["", "Subtotal", "", "", "", round(float(items["Total"].sum()), 2)])

    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        pd.DataFrame(sheet).to_excel(writer, sheet_name="Quote", header=False, index=False)
        if with_labor:
            labor = [["Description", "Hours", "Rate"]] + [[name, 8, rate] for name, rate in LABOR]
            pd.DataFrame(labor).to_excel(writer, sheet_name="Labor", header=False, index=False)

    print(f"Created BOM workbook: {output_path}")
    print(f"  Line items: {len(items)}")
    print(f"  Quantity total: {int(items['Qty'].sum())}")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic BOM workbook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s samples/bom.xlsx
  %(prog)s samples/bom.xlsx --rows 6 --customer "Springfield USD" --project "Lincoln Elementary"
        """,
    )
    parser.add_argument("output", type=Path, help="Output workbook path")
    parser.add_argument("--rows", type=int, default=10, help=f"Line items (max {len(CATALOG)})")
    parser.add_argument("--opp", default="OPP-12345")
    parser.add_argument("--customer", default="Acme Corp")
    parser.add_argument("--project", default="Acme HQ")
    parser.add_argument("--no-labor", action="store_true", help="Omit the labor sheet")
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if args.output.suffix.lower() not in {".xlsx", ".xlsm"}:
        print("Error: output must be .xlsx or .xlsm", file=sys.stderr)
        return 1

    create_bom_file(
        args.output,
        args.rows,
        opp=args.opp,
        customer=args.customer,
        project=args.project,
        with_labor=not args.no_labor,
        seed=args.seed,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
