"""Report-to-DOCX export service for OJT narrative reports."""

__version__ = "1.0.0"
