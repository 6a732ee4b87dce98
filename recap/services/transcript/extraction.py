"""厂商原始结果 → 与厂商无关的抽取字段

每个 ASR 厂商对应一个映射函数，这里是整个项目中唯一了解厂商 JSON 结构的地方。
映射函数只做“取值 + 类型归一”，不做回退决策（回退由 ResultAssembler 负责）：
字段缺失时返回 None，由上层决定下一步。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from recap.core.exceptions import ProviderError
from recap.schemas.transcript import Utterance
from recap.services.asr.base import RawProviderResult, Token, TokenKind
from recap.utils.fallback import present_text


@dataclass(frozen=True)
class ProviderExtraction:
    formatted_transcript: Optional[str] = None
    flat_transcript: Optional[str] = None
    utterances: Optional[list[Utterance]] = None
    tokens: Optional[list[Token]] = None
    topic_segments: list[list[str]] = field(default_factory=list)
    intent_segments: list[list[str]] = field(default_factory=list)
    summary: Optional[str] = None


def _dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _seconds_to_ms(value: Any) -> int:
    try:
        return int(round(float(value) * 1000))
    except (TypeError, ValueError):
        return 0


def _ms(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _speaker(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _labels(segments: Any, list_key: str, label_key: str) -> list[list[str]]:
    result: list[list[str]] = []
    for segment in _list(segments):
        labels = [
            str(item[label_key])
            for item in _list(_dict(segment).get(list_key))
            if isinstance(item, dict) and present_text(item.get(label_key))
        ]
        result.append(labels)
    return result


def _build_utterance(speaker: Any, text: Any, start_ms: int, end_ms: int) -> Optional[Utterance]:
    value = present_text(text)
    if value is None:
        return None
    return Utterance(
        speaker=_speaker(speaker) or "",
        text=value.strip(),
        start_ms=start_ms,
        end_ms=end_ms,
    )


def extract_deepgram(payload: dict[str, Any]) -> ProviderExtraction:
    results = _dict(payload.get("results"))
    channels = _list(results.get("channels"))
    alternatives = _list(_dict(channels[0]).get("alternatives")) if channels else []
    alternative = _dict(alternatives[0]) if alternatives else {}

    utterances = [
        item
        for item in (
            _build_utterance(
                raw.get("speaker"),
                raw.get("transcript"),
                _seconds_to_ms(raw.get("start")),
                _seconds_to_ms(raw.get("end")),
            )
            for raw in map(_dict, _list(results.get("utterances")))
        )
        if item is not None
    ]

    tokens = [
        Token(
            text=str(word.get("punctuated_word") or word.get("word") or ""),
            speaker_label=_speaker(word.get("speaker")),
            kind=TokenKind.WORD,
            start_ms=_seconds_to_ms(word.get("start")),
            end_ms=_seconds_to_ms(word.get("end")),
        )
        for word in map(_dict, _list(alternative.get("words")))
    ]

    return ProviderExtraction(
        formatted_transcript=present_text(_dict(alternative.get("paragraphs")).get("transcript")),
        flat_transcript=present_text(alternative.get("transcript")),
        utterances=utterances or None,
        tokens=tokens or None,
        topic_segments=_labels(_dict(results.get("topics")).get("segments"), "topics", "topic"),
        intent_segments=_labels(_dict(results.get("intents")).get("segments"), "intents", "intent"),
        summary=present_text(_dict(results.get("summary")).get("short")),
    )


# Speechmatics 用 "UU" 标记无法识别的说话人
_SPEECHMATICS_UNKNOWN_SPEAKER = "UU"
_SPEECHMATICS_KINDS = {"word": TokenKind.WORD, "punctuation": TokenKind.PUNCTUATION}


def extract_speechmatics(payload: dict[str, Any]) -> ProviderExtraction:
    tokens: list[Token] = []
    for item in map(_dict, _list(payload.get("results"))):
        kind = _SPEECHMATICS_KINDS.get(str(item.get("type")))
        alternatives = _list(item.get("alternatives"))
        if kind is None or not alternatives:
            continue
        best = _dict(alternatives[0])
        speaker = _speaker(best.get("speaker"))
        if speaker == _SPEECHMATICS_UNKNOWN_SPEAKER:
            speaker = None
        tokens.append(
            Token(
                text=str(best.get("content") or ""),
                speaker_label=speaker,
                kind=kind,
                start_ms=_seconds_to_ms(item.get("start_time")),
                end_ms=_seconds_to_ms(item.get("end_time")),
            )
        )

    return ProviderExtraction(
        tokens=tokens or None,
        topic_segments=_labels(_dict(payload.get("topics")).get("segments"), "topics", "topic"),
        summary=present_text(_dict(payload.get("summary")).get("content")),
    )


def extract_assemblyai(payload: dict[str, Any]) -> ProviderExtraction:
    utterances = [
        item
        for item in (
            _build_utterance(
                raw.get("speaker"),
                raw.get("text"),
                _ms(raw.get("start")),
                _ms(raw.get("end")),
            )
            for raw in map(_dict, _list(payload.get("utterances")))
        )
        if item is not None
    ]

    tokens = [
        Token(
            text=str(word.get("text") or ""),
            speaker_label=_speaker(word.get("speaker")),
            kind=TokenKind.WORD,
            start_ms=_ms(word.get("start")),
            end_ms=_ms(word.get("end")),
        )
        for word in map(_dict, _list(payload.get("words")))
    ]

    categories = _dict(payload.get("iab_categories_result"))
    return ProviderExtraction(
        flat_transcript=present_text(payload.get("text")),
        utterances=utterances or None,
        tokens=tokens or None,
        topic_segments=_labels(categories.get("results"), "labels", "label"),
        summary=present_text(payload.get("summary")),
    )


_EXTRACTORS: dict[str, Callable[[dict[str, Any]], ProviderExtraction]] = {
    "deepgram": extract_deepgram,
    "speechmatics": extract_speechmatics,
    "assemblyai": extract_assemblyai,
}


def extract(raw: RawProviderResult) -> ProviderExtraction:
    extractor = _EXTRACTORS.get(raw.vendor)
    if extractor is None:
        raise ProviderError(raw.vendor, f"no extractor registered for vendor '{raw.vendor}'")
    return extractor(raw.payload)
