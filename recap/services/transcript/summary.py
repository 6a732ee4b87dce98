from __future__ import annotations

import logging
from typing import Optional

from recap.config import settings
from recap.core.exceptions import BusinessError, SummaryGenerationError
from recap.services.llm.base import LLMService
from recap.utils.fallback import present_text

logger = logging.getLogger("recap.services.transcript.summary")

_SUMMARY_PROMPT = (
    "Generate a concise 2-3 sentence summary of the following transcript. "
    "Provide only the summary with no additional text or formatting: {transcript}"
)


class SummaryResolver:
    """摘要解析：厂商原生摘要优先，缺失时调用 LLM 生成"""

    def __init__(self, llm: LLMService, max_tokens: Optional[int] = None) -> None:
        self._llm = llm
        self._max_tokens = max_tokens or settings.SUMMARY_MAX_TOKENS

    async def resolve(self, transcript: str, provider_summary: Optional[str]) -> str:
        provided = present_text(provider_summary)
        if provided is not None:
            logger.info("Using provider summary (%s chars)", len(provided))
            return provided

        logger.info("Provider summary missing, generating with %s", self._llm.model_name)
        try:
            generated = await self._llm.generate(
                _SUMMARY_PROMPT.format(transcript=transcript), self._max_tokens
            )
        except BusinessError as exc:
            raise SummaryGenerationError(str(exc)) from exc

        summary = present_text(generated)
        if summary is None:
            raise SummaryGenerationError("empty response")
        return summary.strip()
