# model/api.py
from pydantic import BaseModel, Field
from model.report import ReportSummary
from model.student import StudentInfo
from util.types import EventType


class MessageResponse(BaseModel):
    ok: bool = True
    message: str


class ClassListResponse(BaseModel):
    classes: list[str]


class CreateClassRequest(BaseModel):
    className: str = ""


class StudentsResponse(BaseModel):
    students: dict[str, StudentInfo]


class SaveStudentRequest(BaseModel):
    studentName: str = ""
    studentInfo: StudentInfo | None = None


class UpdateStudentRequest(BaseModel):
    newName: str = Field(min_length=1)
    studentInfo: StudentInfo


class ImportResponse(BaseModel):
    ok: bool = True
    count: int
    message: str


class ParseResponse(BaseModel):
    parseId: str
    sessionId: str
    foundCount: int
    missingCount: int
    missingStudents: list[str]
    hasDuplicates: bool
    totalPages: int
    reports: list[ReportSummary]


class ProgressPayload(BaseModel):
    processed: int
    total: int
    ts: int


class StreamEvent(BaseModel):
    type: EventType
    payload: dict
