from __future__ import annotations

import logging
from typing import Iterable, Optional

from recap.core.exceptions import NoTranscriptError
from recap.schemas.transcript import CanonicalTranscript, Utterance
from recap.services.asr.base import RawProviderResult
from recap.services.transcript.extraction import ProviderExtraction, extract
from recap.services.transcript.summary import SummaryResolver
from recap.services.transcript.title import TitleGenerator, select_title_source
from recap.utils.fallback import first_present
from recap.utils.token_stream import TokenStreamAssembler, render_text

logger = logging.getLogger("recap.services.transcript.assembler")


def flatten_segments(segments: Iterable[list[str]]) -> list[str]:
    """按片段顺序展开标签，跳过空片段，不去重"""
    flattened: list[str] = []
    for labels in segments:
        if not labels:
            continue
        flattened.extend(labels)
    return flattened


class ResultAssembler:
    """把厂商原始结果组装为 CanonicalTranscript

    顺序：抽取 → 校验转写文本 → 发言（厂商优先，其次 token 流重建）→ 话题/意图
    → 摘要 → 标题。转写文本缺失时直接失败，不会发起任何 LLM 调用。
    """

    def __init__(
        self,
        summary_resolver: SummaryResolver,
        title_generator: TitleGenerator,
        token_assembler: Optional[TokenStreamAssembler] = None,
    ) -> None:
        self._summary_resolver = summary_resolver
        self._title_generator = title_generator
        self._token_assembler = token_assembler or TokenStreamAssembler()

    async def build_canonical_transcript(self, raw: RawProviderResult) -> CanonicalTranscript:
        extraction = extract(raw)

        derived: Optional[list[Utterance]] = None
        if extraction.utterances is None and extraction.tokens:
            derived = self._token_assembler.assemble(extraction.tokens)

        transcript = self._resolve_transcript(raw.vendor, extraction, derived)
        utterances = self._resolve_utterances(raw.vendor, extraction, derived)
        topics = flatten_segments(extraction.topic_segments)
        intents = flatten_segments(extraction.intent_segments)

        summary = await self._summary_resolver.resolve(transcript, extraction.summary)
        title = await self._title_generator.resolve(select_title_source(summary, transcript))

        logger.info(
            "Assembled transcript from %s: chars=%s utterances=%s topics=%s intents=%s",
            raw.vendor,
            len(transcript),
            len(utterances),
            len(topics),
            len(intents),
        )
        return CanonicalTranscript(
            transcript=transcript,
            title=title,
            summary=summary,
            utterances=tuple(utterances),
            topics=tuple(topics),
            intents=tuple(intents),
        )

    def _resolve_transcript(
        self,
        vendor: str,
        extraction: ProviderExtraction,
        derived: Optional[list[Utterance]],
    ) -> str:
        rebuilt = render_text(derived) if derived else None
        transcript = first_present(
            extraction.formatted_transcript,
            extraction.flat_transcript,
            rebuilt,
        )
        if transcript is None:
            logger.warning("No transcript text in %s result", vendor)
            raise NoTranscriptError(vendor)

        if transcript is rebuilt:
            logger.info("Transcript for %s rebuilt from token stream", vendor)
        return transcript.strip()

    def _resolve_utterances(
        self,
        vendor: str,
        extraction: ProviderExtraction,
        derived: Optional[list[Utterance]],
    ) -> list[Utterance]:
        if extraction.utterances is not None:
            logger.debug("Using %s provider utterances", vendor)
            return extraction.utterances
        if derived is not None:
            logger.debug("Derived %s utterances from %s tokens", len(derived), vendor)
            return derived
        return []
