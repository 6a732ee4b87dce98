from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Utterance(BaseModel):
    """单个说话人的一段连续发言（毫秒时间戳）"""

    model_config = ConfigDict(frozen=True)

    speaker: str
    text: str = Field(min_length=1)
    start_ms: int
    end_ms: int


class CanonicalTranscript(BaseModel):
    """与 ASR 厂商无关的最终转写记录"""

    model_config = ConfigDict(frozen=True)

    transcript: str = Field(min_length=1)
    title: str = Field(min_length=1)
    summary: str = Field(min_length=1)
    utterances: tuple[Utterance, ...] = ()
    topics: tuple[str, ...] = ()
    intents: tuple[str, ...] = ()
