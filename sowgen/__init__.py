"""sowgen - BOM spreadsheet to Scope-of-Work document generator."""

__version__ = "0.1.0"
