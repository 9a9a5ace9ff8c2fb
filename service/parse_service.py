# service/parse_service.py
import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Tuple
from fastapi import UploadFile
from core.archive import build_zip
from core.entities import ParseOutcome, PatternSet
from core.page_matcher import match_pages
from core.pattern_builder import build_patterns
from core.pdf_pages import OpenDocument, PageSplitter
from core.streaming import event, make_parse_stream
from model.api import ParseResponse
from model.report import ParseSummary, ReportSummary
from repository.class_repository import ClassRepository
from repository.parse_repository import ParseResultRepository
from util.enums import ErrorMessage, NamingMode
from util.errors import AppError, DocumentLoadError

logger = logging.getLogger(__name__)


@dataclass
class PreparedParse:
    """Everything validated up front, so a stream never starts on bad input."""

    class_name: str
    document: OpenDocument
    table: Dict[str, PatternSet]


class ParseService:
    def __init__(
        self,
        classes: ClassRepository,
        results: ParseResultRepository,
        splitter: PageSplitter,
    ) -> None:
        self._classes = classes
        self._results = results
        self._splitter = splitter

    # ---------------- Parsing ----------------

    async def prepare(self, file: UploadFile | None, class_name: str) -> PreparedParse:
        """
        Roster -> pattern table, upload -> open document.
        Raises AppError for a missing class, a roster with nobody matchable,
        or bytes that are not a readable PDF.
        """
        class_name = (class_name or "").strip()
        if file is None or not class_name:
            raise AppError.of(ErrorMessage.FILE_AND_CLASS_REQUIRED)
        if not await self._classes.exists(class_name):
            raise AppError.of(ErrorMessage.CLASS_NOT_FOUND)

        table = build_patterns(await self._classes.get_students(class_name))
        if not table:
            raise AppError.of(ErrorMessage.NO_VALID_STUDENTS)

        try:
            data = await file.read()
        except Exception:
            logger.error("parse.upload.read.error class=%s", class_name)
            raise
        try:
            doc = await asyncio.to_thread(self._splitter.load, data)
        except DocumentLoadError as e:
            logger.warning("parse.load.error class=%s err=%s", class_name, e)
            raise AppError.of(ErrorMessage.INVALID_PDF)

        return PreparedParse(
            class_name=class_name, document=OpenDocument(doc), table=table
        )

    async def parse_pdf(
        self, file: UploadFile | None, class_name: str, session_id: str | None
    ) -> ParseResponse:
        prepared = await self.prepare(file, class_name)
        try:
            outcome = await prepared.document.run(
                match_pages, prepared.table, self._splitter
            )
        finally:
            prepared.document.close()
        return await self._store(prepared.class_name, outcome, session_id)

    async def stream_parse(
        self, prepared: PreparedParse, session_id: str | None
    ) -> AsyncIterator[bytes]:
        """
        NDJSON variant of parse_pdf. Results are stored only when the pass
        completes; a client that disconnects earlier leaves nothing behind.
        """

        async def _complete(outcome: ParseOutcome) -> Dict[str, object]:
            response = await self._store(prepared.class_name, outcome, session_id)
            return response.model_dump()

        try:
            async for chunk in make_parse_stream(
                document=prepared.document,
                table=prepared.table,
                splitter=self._splitter,
                on_complete=_complete,
            ):
                yield chunk
        except Exception:
            logger.error("stream.parse.error class=%s", prepared.class_name, exc_info=True)
            yield event("error", {"message": ErrorMessage.INTERNAL_ERROR.value.message})
            yield event("done")
        finally:
            prepared.document.close()

    async def _store(
        self, class_name: str, outcome: ParseOutcome, session_id: str | None
    ) -> ParseResponse:
        parse_id = str(uuid.uuid4())
        session_id = session_id or str(uuid.uuid4())
        summary = ParseSummary(
            parseId=parse_id,
            className=class_name,
            totalPages=outcome.total_pages,
            hasDuplicates=outcome.has_duplicates,
            missingStudents=outcome.missing_students,
            reports=[ReportSummary.from_report(r) for r in outcome.reports],
        )
        await self._results.save(
            summary, {r.id: r.page_content for r in outcome.reports}
        )

        previous = await self._results.swap_session(session_id, parse_id)
        if previous and previous != parse_id:
            evicted = await self._results.delete(previous)
            logger.info("parse.replace session=%s evicted_keys=%d", session_id, evicted)

        logger.info(
            "parse.stored parse=%s class=%s found=%d missing=%d",
            parse_id,
            class_name,
            len(summary.reports),
            len(summary.missingStudents),
        )
        return self._response(summary, session_id)

    @staticmethod
    def _response(summary: ParseSummary, session_id: str) -> ParseResponse:
        return ParseResponse(
            parseId=summary.parseId,
            sessionId=session_id,
            foundCount=len(summary.reports),
            missingCount=len(summary.missingStudents),
            missingStudents=summary.missingStudents,
            hasDuplicates=summary.hasDuplicates,
            totalPages=summary.totalPages,
            reports=summary.reports,
        )

    # ---------------- Stored results ----------------

    async def _summary(self, parse_id: str) -> ParseSummary:
        summary = await self._results.get_summary(parse_id)
        if summary is None:
            raise AppError.of(ErrorMessage.PARSE_NOT_FOUND)
        return summary

    async def get_summary(self, parse_id: str) -> ParseSummary:
        return await self._summary(parse_id)

    async def get_report_pdf(self, parse_id: str, report_id: str) -> Tuple[bytes, str]:
        """(single-page PDF, download name by student name)"""
        summary = await self._summary(parse_id)
        report = next((r for r in summary.reports if r.id == report_id), None)
        if report is None:
            raise AppError.of(ErrorMessage.REPORT_NOT_FOUND)
        data = await self._results.get_page(parse_id, report_id)
        if data is None:
            raise AppError.of(ErrorMessage.REPORT_NOT_FOUND)
        return data, report.fileNameStudent

    async def build_zip(
        self, parse_id: str, naming_mode: NamingMode
    ) -> Tuple[bytes, str]:
        summary = await self._summary(parse_id)
        if not summary.reports:
            raise AppError.of(ErrorMessage.NO_REPORTS)

        entries = []
        for report in summary.reports:
            data = await self._results.get_page(parse_id, report.id)
            if data is None:
                logger.warning("zip.page.missing parse=%s report=%s", parse_id, report.id)
                continue
            name = (
                report.fileNameSchoolNo
                if naming_mode == NamingMode.SCHOOL_NO
                else report.fileNameStudent
            )
            entries.append((name, data))

        archive = await asyncio.to_thread(build_zip, entries)
        logger.info(
            "zip.ok parse=%s mode=%s files=%d bytes=%d",
            parse_id,
            naming_mode.value,
            len(entries),
            len(archive),
        )
        return archive, f"reports_{naming_mode.value}.zip"

    async def delete_report(self, parse_id: str, report_id: str) -> None:
        await self._summary(parse_id)
        if not await self._results.remove_report(parse_id, report_id):
            raise AppError.of(ErrorMessage.REPORT_NOT_FOUND)
        logger.info("report.delete parse=%s report=%s", parse_id, report_id)

    async def delete_parse(self, parse_id: str) -> None:
        removed = await self._results.delete(parse_id)
        if not removed:
            raise AppError.of(ErrorMessage.PARSE_NOT_FOUND)
        logger.info("parse.delete parse=%s keys=%d", parse_id, removed)
