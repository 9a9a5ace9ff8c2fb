# repository/class_repository.py
from typing import Dict, List, Mapping
from redis.asyncio import Redis
from config.cache import get_redis
from model.student import Roster, StudentInfo
from repository.namespaces import CLASSES, STUDENTS


class ClassRepository:
    """
    Flow:
    - Class names live in one Redis set.
    - Each class roster is one JSON document (name -> StudentInfo) so entry
      order survives round trips; that order is the matching order later on.
    - Rosters are long-lived; no TTL.
    """

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    @staticmethod
    def _key(class_name: str) -> str:
        return f"{STUDENTS}:{class_name}"

    # ---------------- Classes ----------------

    async def list_classes(self) -> List[str]:
        r = await self._client()
        names = await r.smembers(CLASSES)
        return sorted(
            n.decode("utf-8") if isinstance(n, (bytes, bytearray)) else str(n)
            for n in names or []
        )

    async def exists(self, class_name: str) -> bool:
        r = await self._client()
        return bool(await r.sismember(CLASSES, class_name))

    async def create(self, class_name: str) -> None:
        r = await self._client()
        await r.sadd(CLASSES, class_name)

    async def delete(self, class_name: str) -> int:
        r = await self._client()
        removed = int(await r.srem(CLASSES, class_name))
        await r.delete(self._key(class_name))
        return removed

    # ---------------- Rosters ----------------

    async def get_students(self, class_name: str) -> Dict[str, StudentInfo]:
        r = await self._client()
        raw = await r.get(self._key(class_name))
        if raw is None:
            return {}
        return dict(Roster.model_validate_json(raw).students)

    async def put_students(
        self, class_name: str, students: Mapping[str, StudentInfo]
    ) -> None:
        """Replace the whole roster (and register the class)."""
        r = await self._client()
        payload = Roster(students=dict(students)).model_dump_json().encode("utf-8")
        await r.sadd(CLASSES, class_name)
        await r.set(self._key(class_name), payload)

    async def put_student(self, class_name: str, name: str, info: StudentInfo) -> None:
        students = await self.get_students(class_name)
        students[name] = info
        await self.put_students(class_name, students)

    async def delete_student(self, class_name: str, name: str) -> bool:
        students = await self.get_students(class_name)
        if students.pop(name, None) is None:
            return False
        await self.put_students(class_name, students)
        return True
