class DocumentError(Exception):
    """Base exception for document selection errors."""


class RejectedDocumentError(DocumentError):
    """Raised when a selected file cannot be used as a document."""
