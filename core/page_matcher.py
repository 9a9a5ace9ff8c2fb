# core/page_matcher.py
import logging
import uuid
from typing import Dict, Final, Iterable, List, Mapping, Optional, Set, Tuple
import fitz
from core.entities import PageMatchResult, ParseOutcome, PatternSet, Report
from core.pdf_pages import PageSplitter
from util import functions
from util.errors import PageExtractionError
from util.timing import timed

logger = logging.getLogger(__name__)

# A name with at most this many characters on each side is taken as the whole page text
EXACT_MATCH_LIMIT: Final[int] = 10
# Characters of context kept on each side of the name otherwise
CONTEXT_CHAR_LIMIT: Final[int] = 10


def make_excerpt(text: str, start: int, end: int) -> str:
    pre = start
    post = len(text) - end
    if pre <= EXACT_MATCH_LIMIT and post <= EXACT_MATCH_LIMIT:
        return text[start:end].strip()
    lo = max(0, start - CONTEXT_CHAR_LIMIT)
    hi = min(len(text), end + CONTEXT_CHAR_LIMIT)
    return text[lo:hi].strip()


def match_text(
    page_index: int, text: str, table: Mapping[str, PatternSet]
) -> PageMatchResult:
    """
    First match wins: students are tried in table order, forward pattern
    before reverse, and scanning stops at the first hit. A second student
    named on the same page is never considered.

    Patterns are case-insensitive, so the search runs on the original text and
    match offsets index it directly.
    """
    for pattern_set in table.values():
        for pattern in pattern_set.patterns():
            m = pattern.search(text)
            if m is None:
                continue
            return PageMatchResult(
                page_index=page_index,
                matched_entry=pattern_set.entry,
                excerpt=make_excerpt(text, m.start(), m.end()),
            )
    return PageMatchResult(page_index=page_index)


def match_page(
    doc: fitz.Document,
    page_index: int,
    table: Mapping[str, PatternSet],
    splitter: PageSplitter,
) -> PageMatchResult:
    try:
        text = splitter.extract_text(doc, page_index)
    except PageExtractionError as e:
        logger.warning("parse.page.skip page=%d err=%s", page_index + 1, e)
        return PageMatchResult(page_index=page_index, skipped=True)
    return match_text(page_index, text, table)


def process_page(
    doc: fitz.Document,
    page_index: int,
    table: Mapping[str, PatternSet],
    splitter: PageSplitter,
) -> Tuple[PageMatchResult, Optional[bytes]]:
    """
    Match one page and, on a hit, cut it out. Blocking; callers on the event
    loop run it in a worker thread.
    """
    result = match_page(doc, page_index, table, splitter)
    if result.matched_entry is None:
        return result, None
    try:
        return result, splitter.extract_single_page(doc, page_index)
    except Exception as e:
        logger.warning(
            "parse.page.split.error page=%d err=%s", page_index + 1, type(e).__name__
        )
        return PageMatchResult(page_index=page_index, skipped=True), None


class ReportCollector:
    """
    Accumulates reports in page order. Owns the per-school-number occurrence
    count that drives file names and the duplicate flag, so pages must be fed
    in ascending order by a single owner.
    """

    def __init__(self, roster_names: Iterable[str]) -> None:
        self._roster_names: List[str] = list(roster_names)
        self._counts: Dict[str, int] = {}
        self._found: Set[str] = set()
        self.reports: List[Report] = []
        self.has_duplicates = False

    def add(self, result: PageMatchResult, page_content: bytes) -> Report:
        entry = result.matched_entry
        if entry is None:
            raise ValueError("only matched pages become reports")

        count = self._counts.get(entry.roster_number, 0) + 1
        self._counts[entry.roster_number] = count
        if count > 1:
            self.has_duplicates = True
            logger.info(
                "parse.duplicate no=%s occurrence=%d page=%d",
                entry.roster_number,
                count,
                result.page_index + 1,
            )

        report = Report(
            id=str(uuid.uuid4()),
            student_name=entry.full_name,
            excerpt=result.excerpt or "",
            file_name_school_no=functions.pdf_file_name(entry.roster_number, count - 1),
            file_name_student=functions.pdf_file_name(entry.full_name, count - 1),
            page_content=page_content,
            page_number=result.page_index + 1,
        )
        self.reports.append(report)
        self._found.add(entry.full_name)
        return report

    def missing_students(self) -> List[str]:
        return [n for n in self._roster_names if n not in self._found]

    def outcome(self, total_pages: int) -> ParseOutcome:
        return ParseOutcome(
            reports=list(self.reports),
            missing_students=self.missing_students(),
            has_duplicates=self.has_duplicates,
            total_pages=total_pages,
        )


def match_pages(
    doc: fitz.Document,
    table: Mapping[str, PatternSet],
    splitter: PageSplitter,
) -> ParseOutcome:
    """
    One pass over the document in page order.
    Returns reports (with one-page PDFs), students never found, the duplicate
    flag and the document's page count.
    """
    total = splitter.page_count(doc)
    collector = ReportCollector(table.keys())
    skipped = 0
    with timed(logger, "parse.match", pages=total, students=len(table)):
        for page_index in range(total):
            result, content = process_page(doc, page_index, table, splitter)
            if result.skipped:
                skipped += 1
            if content is not None:
                collector.add(result, content)
    outcome = collector.outcome(total)
    logger.info(
        "parse.outcome pages=%d found=%d missing=%d skipped=%d duplicates=%s",
        total,
        len(outcome.reports),
        len(outcome.missing_students),
        skipped,
        outcome.has_duplicates,
    )
    return outcome
