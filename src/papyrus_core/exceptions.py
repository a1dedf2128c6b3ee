"""
Exception hierarchy for papyrus-core.

Validation problems are raised before any collaborator is called.
Collaborator failures (language model, browser, chart renderer) are
logged where they happen and re-raised as one of the opaque
``CollaboratorError`` subclasses below.
"""

from typing import List, Optional


class PapyrusError(Exception):
    """Base exception for document pipeline operations."""
    pass


class ValidationError(PapyrusError):
    """Exception raised when required input is missing or malformed."""
    pass


class UnsupportedFormatError(ValidationError):
    """Exception raised for a file extension outside the supported set."""

    def __init__(self, message: str, supported: Optional[List[str]] = None):
        super().__init__(message)
        self.supported = list(supported or [])


class CollaboratorError(PapyrusError):
    """Base exception for failures of a delegated collaborator."""
    pass


class AIServiceError(CollaboratorError):
    """Exception raised when the language model fails or returns unparseable output."""
    pass


class PDFGenerationError(CollaboratorError):
    """Exception raised when HTML to PDF rasterization fails."""

    def __init__(self, message: str = "PDF generation failed"):
        super().__init__(message)


class ChartGenerationError(CollaboratorError):
    """Exception raised when a chart or diagram artifact cannot be produced."""
    pass
