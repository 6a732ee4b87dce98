from __future__ import annotations

import logging
from typing import Optional

from recap.config import settings
from recap.core.exceptions import BusinessError, TitleGenerationError
from recap.services.llm.base import LLMService
from recap.utils.fallback import first_present

logger = logging.getLogger("recap.services.transcript.title")

_TITLE_PROMPT = (
    "Generate a short, succinct title (3-6 words) for the following conversation. "
    "Return only the title with no additional text, punctuation, or formatting: {text}"
)
_QUOTES = "\"'“”‘’`"
_TRAILING_PUNCTUATION = ".!?;:,。！？"


def select_title_source(summary: Optional[str], transcript: Optional[str]) -> Optional[str]:
    return first_present(summary, transcript)


def clean_title(raw: str) -> str:
    title = raw.strip().splitlines()[0] if raw.strip() else ""
    title = title.strip().strip(_QUOTES).strip()
    return title.rstrip(_TRAILING_PUNCTUATION).strip()


class TitleGenerator:
    """标题生成：所有厂商都不提供标题，总是调用 LLM"""

    def __init__(self, llm: LLMService, max_tokens: Optional[int] = None) -> None:
        self._llm = llm
        self._max_tokens = max_tokens or settings.TITLE_MAX_TOKENS

    async def resolve(self, summary_or_transcript: Optional[str]) -> str:
        if not summary_or_transcript or not summary_or_transcript.strip():
            raise TitleGenerationError("no summary or transcript to title")

        try:
            generated = await self._llm.generate(
                _TITLE_PROMPT.format(text=summary_or_transcript), self._max_tokens
            )
        except BusinessError as exc:
            raise TitleGenerationError(str(exc)) from exc

        title = clean_title(generated or "")
        if not title:
            raise TitleGenerationError("empty response")
        logger.info("Generated title: %s", title)
        return title
