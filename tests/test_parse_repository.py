"""Parse result store tests against the in-memory Redis"""

import asyncio

from model.report import ParseSummary, ReportSummary
from repository.parse_repository import ParseResultRepository


def _summary(*report_ids):
    return ParseSummary(
        parseId="p1",
        className="9-A",
        totalPages=len(report_ids),
        hasDuplicates=False,
        reports=[
            ReportSummary(
                id=rid,
                studentName=f"Student {rid}",
                matchedText=f"Student {rid}",
                fileNameSchoolNo=f"{rid}.pdf",
                fileNameStudent=f"Student {rid}.pdf",
                pageNumber=i + 1,
            )
            for i, rid in enumerate(report_ids)
        ],
    )


class TestRemoveReport:
    def test_concurrent_deletes_both_stick(self, redis_store):
        repo = ParseResultRepository(ttl_seconds=60)

        async def _run():
            await repo.save(_summary("r1", "r2", "r3"), {"r1": b"1", "r2": b"2", "r3": b"3"})
            removed = await asyncio.gather(
                repo.remove_report("p1", "r1"), repo.remove_report("p1", "r2")
            )
            summary = await repo.get_summary("p1")
            pages = [await repo.get_page("p1", rid) for rid in ("r1", "r2", "r3")]
            return removed, summary, pages

        removed, summary, pages = asyncio.run(_run())

        assert removed == [True, True]
        assert [r.id for r in summary.reports] == ["r3"]
        assert pages == [None, None, b"3"]

    def test_totals_are_untouched(self, redis_store):
        repo = ParseResultRepository(ttl_seconds=60)

        async def _run():
            summary = _summary("r1", "r2")
            summary.hasDuplicates = True
            summary.missingStudents = ["Can Oz"]
            await repo.save(summary, {"r1": b"1", "r2": b"2"})
            await repo.remove_report("p1", "r1")
            return await repo.get_summary("p1")

        stored = asyncio.run(_run())

        assert stored.totalPages == 2
        assert stored.hasDuplicates is True
        assert stored.missingStudents == ["Can Oz"]

    def test_unknown_report_or_parse(self, redis_store):
        repo = ParseResultRepository(ttl_seconds=60)

        async def _run():
            await repo.save(_summary("r1"), {"r1": b"1"})
            return (
                await repo.remove_report("p1", "nope"),
                await repo.remove_report("missing", "r1"),
                await repo.get_page("p1", "r1"),
            )

        assert asyncio.run(_run()) == (False, False, b"1")
