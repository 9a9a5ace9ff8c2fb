# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    BLUE = "\033[34m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class NamingMode(str, Enum):
    """Which file name a report carries inside a ZIP download."""

    SCHOOL_NO = "schoolNo"
    NAME = "name"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    CLASS_NAME_REQUIRED = ErrorInfo(
        "Class name is required", status.HTTP_400_BAD_REQUEST
    )
    CLASS_EXISTS = ErrorInfo("Class already exists", status.HTTP_400_BAD_REQUEST)
    CLASS_NOT_FOUND = ErrorInfo("Class not found", status.HTTP_404_NOT_FOUND)
    STUDENT_NAME_REQUIRED = ErrorInfo(
        "Student name and info are required", status.HTTP_400_BAD_REQUEST
    )
    NO_FILE = ErrorInfo("No file uploaded", status.HTTP_400_BAD_REQUEST)
    FILE_AND_CLASS_REQUIRED = ErrorInfo(
        "File and class name are required", status.HTTP_400_BAD_REQUEST
    )
    INVALID_SPREADSHEET = ErrorInfo(
        "Invalid or unreadable spreadsheet", status.HTTP_400_BAD_REQUEST
    )
    INVALID_PDF = ErrorInfo("Invalid or unreadable PDF", status.HTTP_400_BAD_REQUEST)
    NO_VALID_STUDENTS = ErrorInfo(
        "No valid students found in class. "
        "Students need school number and at least 2 name parts.",
        status.HTTP_400_BAD_REQUEST,
    )
    PARSE_NOT_FOUND = ErrorInfo(
        "Unknown or expired parse result", status.HTTP_404_NOT_FOUND
    )
    NO_REPORTS = ErrorInfo("No parse results available", status.HTTP_404_NOT_FOUND)
    REPORT_NOT_FOUND = ErrorInfo("Report not found", status.HTTP_404_NOT_FOUND)
    INTERNAL_ERROR = ErrorInfo("Internal Error", status.HTTP_500_INTERNAL_SERVER_ERROR)
