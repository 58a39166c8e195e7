"""Spreadsheet reading, header detection and BOM extraction."""
