# src/exception.py

"""
Exception taxonomy for the flashcard service.

Every error carries the HTTP status it maps to, so the API layer can turn
any of them into a JSON response without knowing where it was raised.
"""

import sys
from typing import Any, Dict, Optional


PROCESS_PDF_ERROR = "Failed to process PDF"


def error_message_detail(error, error_detail=sys) -> str:
    """
    Build "file / line / message" detail from the traceback being handled.
    Falls back to the bare message when raised outside an except block.
    """
    _, _, exc_tb = error_detail.exc_info()
    if exc_tb is None:
        return str(error)

    file_name = exc_tb.tb_frame.f_code.co_filename
    return "Error occurred in python script [{0}] line [{1}] error message [{2}]".format(
        file_name, exc_tb.tb_lineno, str(error)
    )


class CustomException(Exception):
    status_code: int = 500
    # Public error label; None means the message itself is the label.
    title: Optional[str] = "Internal server error"

    def __init__(self, error_message, error_detail=sys):
        super().__init__(str(error_message))
        self.message = str(error_message)
        self.error_message = error_message_detail(error_message, error_detail=error_detail)

    def __str__(self) -> str:
        return self.message

    def to_payload(self) -> Dict[str, Any]:
        if self.title is None:
            return {"error": self.message}
        return {
            "error": self.title,
            "message": self.message,
            "details": self.error_message,
        }


class InputValidationError(CustomException):
    """Missing or malformed request fields."""

    status_code = 400
    title = None


class InvalidPdfFormatError(CustomException):
    """Payload does not carry the %PDF signature."""

    status_code = 400
    title = None

    def __init__(self, error_message="Invalid PDF file format", error_detail=sys):
        super().__init__(error_message, error_detail)


class ExtractionFailedError(CustomException):
    status_code = 500
    title = PROCESS_PDF_ERROR


class ProviderError(CustomException):
    status_code = 500
    title = "Failed to generate flashcards"


class InvalidResponseShapeError(ProviderError):
    """Model reply is not an object with a flashcards (or cards) array."""


class ConfigurationError(CustomException):
    status_code = 500
    title = None


class RequestTimeoutError(CustomException):
    status_code = 504
    title = "Request timeout"
