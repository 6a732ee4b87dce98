from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from recap.schemas.transcript import CanonicalTranscript


class TranscriptStore(ABC):
    """转写记录持久化端口，由调用方提供具体实现（数据库等）"""

    @abstractmethod
    async def save(self, recording_id: str, record: CanonicalTranscript) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get(self, recording_id: str) -> Optional[CanonicalTranscript]:
        raise NotImplementedError


class InMemoryTranscriptStore(TranscriptStore):
    def __init__(self) -> None:
        self._records: dict[str, CanonicalTranscript] = {}
        self._lock = asyncio.Lock()

    async def save(self, recording_id: str, record: CanonicalTranscript) -> None:
        async with self._lock:
            self._records[recording_id] = record

    async def get(self, recording_id: str) -> Optional[CanonicalTranscript]:
        return self._records.get(recording_id)
