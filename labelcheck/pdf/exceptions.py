class PdfInspectionError(Exception):
    """Raised when a PDF cannot be opened to inspect its structure."""
