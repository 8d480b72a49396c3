import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .schemas import DreamAnalysis, DreamRecord, DreamRequest, ReflectionNote

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class DreamStore:
    """In-memory, append-only dream records keyed by an auto-incrementing id."""

    def __init__(self, clock: Clock = datetime.now):
        self._clock = clock
        self._dreams: Dict[int, DreamRecord] = {}
        self._next_id = 1

    async def append(self, request: DreamRequest, analysis: DreamAnalysis) -> DreamRecord:
        # No await between id assignment and insert, so appends never interleave
        dream_id = self._next_id
        record = DreamRecord.from_submission(dream_id, self._clock(), request, analysis)
        self._next_id += 1
        self._dreams[dream_id] = record
        logger.info("Stored dream %s", dream_id)
        return record

    async def get(self, dream_id: int) -> Optional[DreamRecord]:
        return self._dreams.get(dream_id)

    async def all(self) -> List[DreamRecord]:
        """Most recent first; ids break ties between identical timestamps."""
        return sorted(
            self._dreams.values(),
            key=lambda record: (record.created_at, record.id),
            reverse=True,
        )

    async def count(self) -> int:
        return len(self._dreams)


class ReflectionNotes:
    """Free-text notes attached to a dream. The last write wins."""

    def __init__(self, clock: Clock = datetime.now):
        self._clock = clock
        self._notes: Dict[int, ReflectionNote] = {}

    async def get(self, dream_id: int) -> Optional[ReflectionNote]:
        return self._notes.get(dream_id)

    async def put(self, dream_id: int, text: str) -> ReflectionNote:
        note = ReflectionNote(dream_id=dream_id, text=text, updated_at=self._clock())
        self._notes[dream_id] = note
        return note
