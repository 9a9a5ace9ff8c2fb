# model/report.py
from pydantic import BaseModel, Field
from core.entities import Report


class ReportSummary(BaseModel):
    """One matched page, without its PDF bytes."""

    id: str
    studentName: str
    matchedText: str
    fileNameSchoolNo: str
    fileNameStudent: str
    pageNumber: int

    @classmethod
    def from_report(cls, report: Report) -> "ReportSummary":
        return cls(
            id=report.id,
            studentName=report.student_name,
            matchedText=report.excerpt,
            fileNameSchoolNo=report.file_name_school_no,
            fileNameStudent=report.file_name_student,
            pageNumber=report.page_number,
        )


class ParseSummary(BaseModel):
    parseId: str
    className: str
    totalPages: int
    hasDuplicates: bool = False
    missingStudents: list[str] = Field(default_factory=list)
    reports: list[ReportSummary] = Field(default_factory=list)
