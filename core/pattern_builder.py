# core/pattern_builder.py
import logging
import re
from typing import Dict, Mapping, Pattern, Sequence
from core.entities import PatternSet, RosterEntry
from model.student import StudentInfo
from util.functions import name_tokens

logger = logging.getLogger(__name__)

MIN_NAME_TOKENS = 2
# Cells imported from spreadsheets with an empty school number come back as this
_EMPTY_MARKERS = {"", "undefined"}


def _compile(tokens: Sequence[str]) -> Pattern[str]:
    return re.compile(r"\s*".join(re.escape(t) for t in tokens), re.IGNORECASE)


def prepare_roster(students: Mapping[str, StudentInfo]) -> Dict[str, RosterEntry]:
    """
    Keep only students that can be matched: a school number and at least two
    name tokens. The rest are dropped without error; they are neither searched
    for nor reported as missing. Insertion order is preserved.
    """
    roster: Dict[str, RosterEntry] = {}
    for full_name, info in students.items():
        roster_number = (info.schoolNo or "").strip()
        tokens = name_tokens(full_name)
        if roster_number in _EMPTY_MARKERS or len(tokens) < MIN_NAME_TOKENS:
            logger.debug(
                "roster.skip tokens=%d has_no=%s", len(tokens), bool(roster_number)
            )
            continue
        roster[full_name] = RosterEntry(
            full_name=full_name,
            roster_number=roster_number,
            name_tokens=tuple(tokens),
        )
    return roster


def patterns_for(entry: RosterEntry) -> PatternSet:
    return PatternSet(
        entry=entry,
        forward=_compile(entry.name_tokens),
        reverse=_compile(entry.name_tokens[::-1]),
    )


def build_patterns(students: Mapping[str, StudentInfo]) -> Dict[str, PatternSet]:
    """
    full name -> forward/reverse patterns for every matchable student.
    Iteration order of the result is the roster order and decides ties.
    """
    roster = prepare_roster(students)
    table = {name: patterns_for(entry) for name, entry in roster.items()}
    logger.info(
        "roster.patterns students=%d matchable=%d", len(students), len(table)
    )
    return table
