from __future__ import annotations

import logging
from typing import Optional
from uuid import uuid4

from recap.config import settings
from recap.schemas.transcript import CanonicalTranscript
from recap.services.asr import get_asr_service
from recap.services.asr.base import ASRService
from recap.services.llm import get_llm_service
from recap.services.transcript.assembler import ResultAssembler
from recap.services.transcript.summary import SummaryResolver
from recap.services.transcript.title import TitleGenerator
from recap.services.transcript_store import TranscriptStore

logger = logging.getLogger("recap.services.transcript.pipeline")


class TranscriptionPipeline:
    """单次请求的完整流程：ASR 厂商调用 → 组装标准转写记录"""

    def __init__(self, asr: ASRService, assembler: ResultAssembler) -> None:
        self._asr = asr
        self._assembler = assembler

    @property
    def provider(self) -> str:
        return self._asr.provider

    async def transcribe_url(self, audio_url: str) -> CanonicalTranscript:
        raw = await self._asr.transcribe_url(audio_url)
        return await self._assembler.build_canonical_transcript(raw)

    async def transcribe_buffer(
        self, audio: bytes, mime_type: Optional[str] = None
    ) -> CanonicalTranscript:
        raw = await self._asr.transcribe_buffer(
            audio, mime_type or settings.DEFAULT_AUDIO_MIME_TYPE
        )
        return await self._assembler.build_canonical_transcript(raw)


def create_pipeline(
    asr_provider: Optional[str] = None,
    llm_provider: Optional[str] = None,
    asr_config: Optional[object] = None,
    llm_config: Optional[object] = None,
) -> TranscriptionPipeline:
    asr = get_asr_service(asr_provider, config=asr_config)
    llm = get_llm_service(llm_provider, config=llm_config)
    logger.info("Transcription pipeline: asr=%s llm=%s", asr.provider, llm.provider)
    assembler = ResultAssembler(SummaryResolver(llm), TitleGenerator(llm))
    return TranscriptionPipeline(asr, assembler)


async def process_recording(
    pipeline: TranscriptionPipeline,
    store: TranscriptStore,
    audio: bytes,
    mime_type: Optional[str] = None,
    recording_id: Optional[str] = None,
) -> str:
    record = await pipeline.transcribe_buffer(audio, mime_type)
    recording_id = recording_id or str(uuid4())
    await store.save(recording_id, record)
    logger.info("Saved recording %s (%s)", recording_id, record.title)
    return recording_id
