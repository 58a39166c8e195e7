"""Scope-of-work section catalog, text engine and BOM auto-fill."""
