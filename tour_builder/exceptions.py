"""
Error types raised by the tour builder.

Generation failures and storage failures are kept apart so callers can offer
the right remedy (retry the PDF vs. retry the save).
"""


class TourBuilderError(Exception):
    """Base class for all tour builder errors."""


class PDFGenerationError(TourBuilderError):
    """The drawing engine failed while producing a document."""


class GenerationCancelled(PDFGenerationError):
    """The caller abandoned generation before the document was finished."""


class StorageError(TourBuilderError):
    """Reading or writing saved forms failed."""


class FormNotFoundError(StorageError):
    def __init__(self, form_id: str):
        super().__init__(f"Saved form not found: {form_id}")
        self.form_id = form_id


class InvalidPayloadError(TourBuilderError):
    """An imported file is not a JSON object we can treat as a tour payload."""


__all__ = [
    "TourBuilderError",
    "PDFGenerationError",
    "GenerationCancelled",
    "StorageError",
    "FormNotFoundError",
    "InvalidPayloadError",
]
