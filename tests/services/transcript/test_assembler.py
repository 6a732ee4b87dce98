from __future__ import annotations

import pytest

from recap.core.exceptions import (
    BusinessError,
    NoTranscriptError,
    SummaryGenerationError,
    TitleGenerationError,
)
from recap.i18n.codes import ErrorCode
from recap.services.asr.base import RawProviderResult
from recap.services.llm.base import LLMService
from recap.services.transcript.assembler import ResultAssembler, flatten_segments
from recap.services.transcript.summary import SummaryResolver
from recap.services.transcript.title import TitleGenerator


class _ScriptedLLM(LLMService):
    """按提示词类型返回预设的摘要或标题"""

    def __init__(self, summary: str = "Generated summary.", title: str = "Generated Title") -> None:
        self.summary = summary
        self.title = title
        self.prompts: list[str] = []

    @property
    def provider(self) -> str:
        return "fake"

    @property
    def model_name(self) -> str:
        return "fake-model"

    async def generate(self, prompt: str, max_tokens: int) -> str:
        self.prompts.append(prompt)
        if prompt.startswith("Generate a short, succinct title"):
            return self.title
        return self.summary


def _assembler(llm: LLMService) -> ResultAssembler:
    return ResultAssembler(SummaryResolver(llm), TitleGenerator(llm))


def _deepgram_result() -> RawProviderResult:
    return RawProviderResult(
        vendor="deepgram",
        payload={
            "results": {
                "channels": [
                    {
                        "alternatives": [
                            {
                                "transcript": "hello there how are you",
                                "paragraphs": {
                                    "transcript": "\nSpeaker 0: Hello there.\n\nSpeaker 1: How are you?\n"
                                },
                            }
                        ]
                    }
                ],
                "utterances": [
                    {"speaker": 0, "transcript": "Hello there.", "start": 0.0, "end": 1.0},
                    {"speaker": 1, "transcript": "How are you?", "start": 1.5, "end": 2.5},
                ],
                "topics": {
                    "segments": [
                        {"topics": [{"topic": "Greetings"}]},
                        {"topics": []},
                        {"topics": [{"topic": "Small talk"}, {"topic": "Greetings"}]},
                    ]
                },
                "intents": {"segments": [{"intents": [{"intent": "Check in"}]}]},
                "summary": {"short": "Two people greet each other."},
            }
        },
    )


def _speechmatics_result(summary: str | None = None) -> RawProviderResult:
    def item(kind: str, content: str, speaker: str, start: float) -> dict[str, object]:
        return {
            "type": kind,
            "start_time": start,
            "end_time": start + 0.2,
            "alternatives": [{"content": content, "speaker": speaker}],
        }

    payload: dict[str, object] = {
        "results": [
            item("word", "Hello", "S1", 0.0),
            item("punctuation", ",", "S1", 0.2),
            item("word", "world", "S1", 0.3),
            item("punctuation", ".", "S1", 0.5),
            item("word", "Hi", "S2", 1.0),
            item("punctuation", "!", "S2", 1.2),
        ]
    }
    if summary is not None:
        payload["summary"] = {"content": summary}
    return RawProviderResult(vendor="speechmatics", payload=payload)


def test_flatten_segments_keeps_order_and_duplicates() -> None:
    assert flatten_segments([["a"], [], ["b", "a"]]) == ["a", "b", "a"]
    assert flatten_segments([]) == []


@pytest.mark.asyncio
async def test_deepgram_result_uses_provider_fields() -> None:
    llm = _ScriptedLLM(title='"Friendly Greeting."')

    record = await _assembler(llm).build_canonical_transcript(_deepgram_result())

    assert record.transcript == "Speaker 0: Hello there.\n\nSpeaker 1: How are you?"
    assert record.summary == "Two people greet each other."
    assert record.title == "Friendly Greeting"
    assert [(u.speaker, u.text, u.start_ms, u.end_ms) for u in record.utterances] == [
        ("0", "Hello there.", 0, 1000),
        ("1", "How are you?", 1500, 2500),
    ]
    assert record.topics == ("Greetings", "Small talk", "Greetings")
    assert record.intents == ("Check in",)
    # 厂商已提供摘要，只会调用一次 LLM（标题）
    assert len(llm.prompts) == 1
    assert llm.prompts[0].endswith("Two people greet each other.")


@pytest.mark.asyncio
async def test_flat_transcript_used_when_paragraphs_missing() -> None:
    raw = _deepgram_result()
    raw.payload["results"]["channels"][0]["alternatives"][0]["paragraphs"] = {"transcript": "  "}

    record = await _assembler(_ScriptedLLM()).build_canonical_transcript(raw)

    assert record.transcript == "hello there how are you"


@pytest.mark.asyncio
async def test_missing_transcript_fails_before_any_llm_call() -> None:
    llm = _ScriptedLLM()
    raw = RawProviderResult(vendor="deepgram", payload={"results": {"channels": []}})

    with pytest.raises(NoTranscriptError) as exc_info:
        await _assembler(llm).build_canonical_transcript(raw)

    assert exc_info.value.code == ErrorCode.TRANSCRIPT_EMPTY
    assert exc_info.value.vendor == "deepgram"
    assert llm.prompts == []


@pytest.mark.asyncio
async def test_speechmatics_tokens_are_grouped_and_transcript_rebuilt() -> None:
    llm = _ScriptedLLM(summary="A quick greeting.", title="Quick Greeting")

    record = await _assembler(llm).build_canonical_transcript(_speechmatics_result())

    assert [(u.speaker, u.text) for u in record.utterances] == [
        ("S1", "Hello, world."),
        ("S2", "Hi!"),
    ]
    assert record.transcript == "Hello, world. Hi!"
    assert record.summary == "A quick greeting."
    assert record.title == "Quick Greeting"
    assert record.intents == ()
    # 先生成摘要，再用摘要生成标题
    assert len(llm.prompts) == 2
    assert llm.prompts[0].endswith("Hello, world. Hi!")
    assert llm.prompts[1].endswith("A quick greeting.")


@pytest.mark.asyncio
async def test_provider_utterances_win_over_tokens() -> None:
    raw = RawProviderResult(
        vendor="assemblyai",
        payload={
            "text": "Hello there friend",
            "utterances": [{"speaker": "A", "text": "Hello there friend", "start": 0, "end": 900}],
            "words": [
                {"text": "Hello", "speaker": "A", "start": 0, "end": 300},
                {"text": "there", "speaker": "B", "start": 300, "end": 600},
                {"text": "friend", "speaker": "A", "start": 600, "end": 900},
            ],
            "summary": "A greeting.",
        },
    )

    record = await _assembler(_ScriptedLLM()).build_canonical_transcript(raw)

    assert len(record.utterances) == 1
    assert record.utterances[0].speaker == "A"
    assert record.utterances[0].text == "Hello there friend"


@pytest.mark.asyncio
async def test_words_used_when_provider_utterances_missing() -> None:
    raw = RawProviderResult(
        vendor="assemblyai",
        payload={
            "text": "Hello there friend",
            "words": [
                {"text": "Hello", "speaker": "A", "start": 0, "end": 300},
                {"text": "there", "speaker": "A", "start": 300, "end": 600},
                {"text": "friend", "speaker": "B", "start": 600, "end": 900},
            ],
        },
    )

    record = await _assembler(_ScriptedLLM()).build_canonical_transcript(raw)

    assert record.transcript == "Hello there friend"
    assert [(u.speaker, u.text, u.start_ms, u.end_ms) for u in record.utterances] == [
        ("A", "Hello there", 0, 600),
        ("B", "friend", 600, 900),
    ]


@pytest.mark.asyncio
async def test_summary_failure_propagates() -> None:
    llm = _ScriptedLLM(summary="")

    with pytest.raises(SummaryGenerationError):
        await _assembler(llm).build_canonical_transcript(_speechmatics_result())


@pytest.mark.asyncio
async def test_same_input_yields_identical_record() -> None:
    assembler = _assembler(_ScriptedLLM())

    first = await assembler.build_canonical_transcript(_speechmatics_result("Provided."))
    second = await assembler.build_canonical_transcript(_speechmatics_result("Provided."))

    assert first.model_dump_json() == second.model_dump_json()
    assert first == second


@pytest.mark.asyncio
async def test_flat_transcript_only() -> None:
    llm = _ScriptedLLM(summary="They discussed lunch.", title="Lunch Plans")
    raw = RawProviderResult(vendor="assemblyai", payload={"text": "  Where should we eat?  "})

    record = await _assembler(llm).build_canonical_transcript(raw)

    assert record.transcript == "Where should we eat?"
    assert record.summary == "They discussed lunch."
    assert record.title == "Lunch Plans"
    assert record.utterances == ()
    assert record.topics == ()
    assert record.intents == ()


@pytest.mark.asyncio
async def test_blank_title_propagates() -> None:
    llm = _ScriptedLLM(summary="A quick greeting.", title="  ")

    with pytest.raises(TitleGenerationError):
        await _assembler(llm).build_canonical_transcript(_speechmatics_result())


@pytest.mark.asyncio
async def test_title_generation_failure_propagates() -> None:
    class _TitleFailingLLM(_ScriptedLLM):
        async def generate(self, prompt: str, max_tokens: int) -> str:
            if prompt.startswith("Generate a short, succinct title"):
                self.prompts.append(prompt)
                raise BusinessError(ErrorCode.LLM_SERVICE_UNAVAILABLE, reason="overloaded")
            return await super().generate(prompt, max_tokens)

    llm = _TitleFailingLLM()

    with pytest.raises(TitleGenerationError) as exc_info:
        await _assembler(llm).build_canonical_transcript(_deepgram_result())

    assert exc_info.value.code == ErrorCode.AI_TITLE_GENERATION_FAILED
    assert len(llm.prompts) == 1
