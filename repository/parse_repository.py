# repository/parse_repository.py
from typing import Mapping, Optional
from redis.asyncio import Redis
from redis.exceptions import WatchError
from config.cache import get_redis
from config.settings import settings
from model.report import ParseSummary
from repository.namespaces import PARSES, SESSIONS


class ParseResultRepository:
    """
    Flow:
    - One result set per parse id: a ParseSummary JSON plus one key per
      report holding its single-page PDF bytes.
    - A session key points at the session's current parse; a new parse swaps
      the pointer and the caller evicts whatever it pointed to before.
    - Everything expires after PERSISTENCE_TTL_SECONDS; reads refresh the TTL.
    """

    def __init__(self, ttl_seconds: int = settings.PERSISTENCE_TTL_SECONDS) -> None:
        self._ttl = int(ttl_seconds)

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    @staticmethod
    def _summary_key(parse_id: str) -> str:
        return f"{PARSES}:{parse_id}:summary"

    @staticmethod
    def _page_key(parse_id: str, report_id: str) -> str:
        return f"{PARSES}:{parse_id}:page:{report_id}"

    @staticmethod
    def _session_key(session_id: str) -> str:
        return f"{SESSIONS}:{session_id}"

    # ---------------- Result sets ----------------

    async def save(
        self, summary: ParseSummary, pages: Mapping[str, bytes]
    ) -> None:
        """Pages first, summary last: a summary is only visible once complete."""
        r = await self._client()
        for report_id, data in pages.items():
            await r.set(self._page_key(summary.parseId, report_id), data, ex=self._ttl)
        await self._put_summary(r, summary)

    async def _put_summary(self, r: Redis, summary: ParseSummary) -> None:
        payload = summary.model_dump_json().encode("utf-8")
        await r.set(self._summary_key(summary.parseId), payload, ex=self._ttl)

    async def get_summary(self, parse_id: str) -> Optional[ParseSummary]:
        if not parse_id:
            return None
        r = await self._client()
        raw = await r.get(self._summary_key(parse_id))
        if raw is None:
            return None
        summary = ParseSummary.model_validate_json(raw)
        await self.touch(summary)
        return summary

    async def get_page(self, parse_id: str, report_id: str) -> Optional[bytes]:
        r = await self._client()
        return await r.get(self._page_key(parse_id, report_id))

    async def remove_report(self, parse_id: str, report_id: str) -> bool:
        """
        Drop one report in place. Totals (page count, duplicate flag, missing
        students) keep the values computed by the parse.

        The summary rewrite and the page delete run as one WATCH/MULTI
        transaction; a concurrent write to the summary retries the whole step.
        """
        key = self._summary_key(parse_id)
        r = await self._client()
        async with r.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(key)
                    raw = await pipe.get(key)
                    if raw is None:
                        return False
                    summary = ParseSummary.model_validate_json(raw)
                    kept = [rep for rep in summary.reports if rep.id != report_id]
                    if len(kept) == len(summary.reports):
                        return False
                    summary.reports = kept

                    pipe.multi()
                    pipe.set(key, summary.model_dump_json().encode("utf-8"), ex=self._ttl)
                    pipe.delete(self._page_key(parse_id, report_id))
                    await pipe.execute()
                    return True
                except WatchError:
                    continue

    async def delete(self, parse_id: str) -> int:
        summary = await self.get_summary(parse_id)
        if summary is None:
            return 0
        r = await self._client()
        keys = [self._page_key(parse_id, rep.id) for rep in summary.reports]
        keys.append(self._summary_key(parse_id))
        return int(await r.delete(*keys))

    async def touch(self, summary: ParseSummary) -> None:
        r = await self._client()
        await r.expire(self._summary_key(summary.parseId), self._ttl)
        for rep in summary.reports:
            await r.expire(self._page_key(summary.parseId, rep.id), self._ttl)

    # ---------------- Sessions ----------------

    async def swap_session(self, session_id: str, parse_id: str) -> Optional[str]:
        """Point the session at `parse_id`; returns the parse it pointed to before."""
        r = await self._client()
        previous = await r.set(
            self._session_key(session_id), parse_id, ex=self._ttl, get=True
        )
        if previous is None:
            return None
        return (
            previous.decode("utf-8")
            if isinstance(previous, (bytes, bytearray))
            else str(previous)
        )
