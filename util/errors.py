# util/errors.py
from fastapi import HTTPException, status
from util.enums import ErrorMessage


class AppError(HTTPException):
    # Flow: raise AppError to short-circuit with a typed status & message.
    def __init__(
        self, message: str, http_status: int = status.HTTP_400_BAD_REQUEST
    ) -> None:
        super().__init__(status_code=http_status, detail=message)

    @classmethod
    def of(cls, error: ErrorMessage) -> "AppError":
        return cls(error.value.message, error.value.http_status)


class DocumentLoadError(Exception):
    """The uploaded bytes are not a readable PDF. Fatal for the whole parse."""


class PageExtractionError(Exception):
    """A single page could not be read. The parse skips it and carries on."""

    def __init__(self, page_index: int, reason: str) -> None:
        super().__init__(f"page {page_index + 1}: {reason}")
        self.page_index = page_index


class SpreadsheetError(Exception):
    """Roster upload is not a readable .xlsx workbook or lacks the name columns."""
