"""OOXML (.docx) template rendering and appendix composition."""
