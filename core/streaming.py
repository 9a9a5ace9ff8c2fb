# core/streaming.py
import json
import logging
import time
from typing import AsyncIterator, Awaitable, Callable, Dict, Final, Mapping
from core.entities import ParseOutcome, PatternSet
from core.page_matcher import ReportCollector, process_page
from core.pdf_pages import OpenDocument, PageSplitter
from model.api import ProgressPayload, StreamEvent
from model.report import ReportSummary
from util.timing import timed
from util.types import EventType

LINE_SEP: Final[str] = "\n"
logger = logging.getLogger(__name__)


def ndjson_line(obj: Dict[str, object]) -> bytes:
    return (json.dumps(obj, separators=(",", ":"), ensure_ascii=False) + LINE_SEP).encode(
        "utf-8"
    )


def event(kind: EventType, payload: Dict[str, object] | None = None) -> bytes:
    return ndjson_line(StreamEvent(type=kind, payload=payload or {}).model_dump())


def _progress(processed: int, total: int) -> bytes:
    payload = ProgressPayload(processed=processed, total=total, ts=int(time.time()))
    return event("progress", payload.model_dump())


async def make_parse_stream(
    *,
    document: OpenDocument,
    table: Mapping[str, PatternSet],
    splitter: PageSplitter,
    on_complete: Callable[[ParseOutcome], Awaitable[Dict[str, object]]],
) -> AsyncIterator[bytes]:
    """
    Drive the same page-ordered pass as match_pages, one page per hop to
    the document's worker thread, and emit NDJSON events:
      - progress after every page (and once up front)
      - report as each matched page is cut out
      - result once, with whatever `on_complete` returns for the outcome
      - done
    If the consumer goes away mid-stream the generator is closed before
    `on_complete` runs, so nothing is persisted.
    """
    total = document.page_count
    collector = ReportCollector(table.keys())
    logger.info("stream.start pages=%d students=%d", total, len(table))

    yield _progress(0, total)
    with timed(logger, "stream.match.all", pages=total):
        for page_index in range(total):
            result, content = await document.run(
                process_page, page_index, table, splitter
            )
            if content is not None:
                report = collector.add(result, content)
                yield event("report", ReportSummary.from_report(report).model_dump())
            yield _progress(page_index + 1, total)

    payload = await on_complete(collector.outcome(total))
    logger.info("stream.done pages=%d found=%d", total, len(collector.reports))
    yield event("result", payload)
    yield event("done")
