# core/entities.py
from dataclasses import dataclass, field
from typing import List, Optional, Pattern, Tuple


@dataclass(frozen=True)
class RosterEntry:
    full_name: str
    roster_number: str  # school number, never empty
    name_tokens: Tuple[str, ...]  # >= 2 tokens, in the order written in the roster


@dataclass(frozen=True)
class PatternSet:
    """
    Forward and reverse token patterns for one roster entry.
    Both are compiled case-insensitive with `\\s*` between tokens.
    """

    entry: RosterEntry
    forward: Pattern[str]
    reverse: Pattern[str]

    @property
    def roster_number(self) -> str:
        return self.entry.roster_number

    def patterns(self) -> Tuple[Pattern[str], Pattern[str]]:
        return (self.forward, self.reverse)


@dataclass
class PageMatchResult:
    page_index: int  # 0-based
    matched_entry: Optional[RosterEntry] = None
    excerpt: Optional[str] = None
    skipped: bool = False  # text extraction failed


@dataclass
class Report:
    id: str
    student_name: str
    excerpt: str
    file_name_school_no: str
    file_name_student: str
    page_content: bytes = field(repr=False)
    page_number: int  # 1-based


@dataclass
class ParseOutcome:
    reports: List[Report]
    missing_students: List[str]
    has_duplicates: bool
    total_pages: int
