# core/spreadsheet.py
import io
import logging
from typing import Dict, List, Optional
from openpyxl import load_workbook
from model.student import StudentInfo
from util.constants import SpreadsheetColumns as Col
from util.errors import SpreadsheetError

logger = logging.getLogger(__name__)

_FIELDS = {
    "schoolNo": Col.SCHOOL_NO,
    "motherName": Col.MOTHER_NAME,
    "motherEmail": Col.MOTHER_EMAIL,
    "motherPhone": Col.MOTHER_PHONE,
    "fatherName": Col.FATHER_NAME,
    "fatherEmail": Col.FATHER_EMAIL,
    "fatherPhone": Col.FATHER_PHONE,
}


def _cell_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return "" if text == "undefined" else text


def read_roster(data: bytes) -> Dict[str, StudentInfo]:
    """
    Read the first sheet of an .xlsx roster export.

    Row 1 is the header; columns are located by header text so their order
    does not matter. Rows without a name or a school number are skipped.
    Later rows win when a name repeats.
    """
    try:
        wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except Exception as e:
        raise SpreadsheetError("could not open workbook") from e

    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            raise SpreadsheetError("empty sheet")
        columns: Dict[str, int] = {
            _cell_text(h): i for i, h in enumerate(header) if _cell_text(h)
        }
        if Col.NAME not in columns or Col.SCHOOL_NO not in columns:
            raise SpreadsheetError(
                f"header must contain '{Col.NAME}' and '{Col.SCHOOL_NO}'"
            )

        def cell(row: tuple, column: str) -> str:
            idx: Optional[int] = columns.get(column)
            if idx is None or idx >= len(row):
                return ""
            return _cell_text(row[idx])

        students: Dict[str, StudentInfo] = {}
        skipped: List[int] = []
        for line_no, row in enumerate(rows, start=2):
            name = cell(row, Col.NAME)
            if not name or not cell(row, Col.SCHOOL_NO):
                skipped.append(line_no)
                continue
            students[name] = StudentInfo(
                **{field: cell(row, column) for field, column in _FIELDS.items()}
            )
    finally:
        wb.close()

    logger.info("excel.read students=%d skipped=%d", len(students), len(skipped))
    return students
