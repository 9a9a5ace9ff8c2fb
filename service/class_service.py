# service/class_service.py
import logging
from fastapi import UploadFile
from core.spreadsheet import read_roster
from model.api import ImportResponse, SaveStudentRequest, UpdateStudentRequest
from model.student import StudentInfo
from repository.class_repository import ClassRepository
from util.enums import ErrorMessage
from util.errors import AppError, SpreadsheetError

logger = logging.getLogger(__name__)


class ClassService:
    """Class and roster maintenance; the roster is what a parse matches against."""

    def __init__(self, classes: ClassRepository) -> None:
        self._classes = classes

    async def list_classes(self) -> list[str]:
        return await self._classes.list_classes()

    async def create_class(self, class_name: str) -> None:
        name = (class_name or "").strip()
        if not name:
            raise AppError.of(ErrorMessage.CLASS_NAME_REQUIRED)
        if await self._classes.exists(name):
            raise AppError.of(ErrorMessage.CLASS_EXISTS)
        await self._classes.create(name)
        logger.info("class.create name=%s", name)

    async def delete_class(self, class_name: str) -> None:
        removed = await self._classes.delete(class_name)
        logger.info("class.delete name=%s removed=%d", class_name, removed)

    async def list_students(self, class_name: str) -> dict[str, StudentInfo]:
        return await self._classes.get_students(class_name)

    async def save_student(self, class_name: str, payload: SaveStudentRequest) -> None:
        name = (payload.studentName or "").strip()
        if not name or payload.studentInfo is None:
            raise AppError.of(ErrorMessage.STUDENT_NAME_REQUIRED)
        await self._classes.put_student(class_name, name, payload.studentInfo)
        logger.info("student.save class=%s", class_name)

    async def update_student(
        self, class_name: str, old_name: str, payload: UpdateStudentRequest
    ) -> None:
        """Rename-aware update: the old entry goes when the name changes."""
        new_name = payload.newName.strip()
        students = await self._classes.get_students(class_name)
        if new_name != old_name and old_name in students:
            # keep the student's slot in the roster order
            students = {
                (new_name if n == old_name else n): info
                for n, info in students.items()
            }
        students[new_name] = payload.studentInfo
        await self._classes.put_students(class_name, students)
        logger.info("student.update class=%s renamed=%s", class_name, new_name != old_name)

    async def delete_student(self, class_name: str, student_name: str) -> None:
        removed = await self._classes.delete_student(class_name, student_name)
        logger.info("student.delete class=%s removed=%s", class_name, removed)

    async def import_spreadsheet(
        self, class_name: str, file: UploadFile | None
    ) -> ImportResponse:
        """
        Merge an .xlsx roster into the class: imported rows overwrite students
        with the same name, everyone else stays.
        """
        if file is None:
            raise AppError.of(ErrorMessage.NO_FILE)
        try:
            data = await file.read()
        except Exception:
            logger.error("excel.read.error class=%s", class_name)
            raise
        try:
            imported = read_roster(data)
        except SpreadsheetError as e:
            logger.warning("excel.invalid class=%s err=%s", class_name, e)
            raise AppError.of(ErrorMessage.INVALID_SPREADSHEET)

        students = await self._classes.get_students(class_name)
        students.update(imported)
        await self._classes.put_students(class_name, students)
        logger.info("excel.import class=%s count=%d", class_name, len(imported))
        return ImportResponse(
            count=len(imported), message=f"{len(imported)} students imported"
        )
