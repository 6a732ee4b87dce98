"""逐词 token 流 → 按说话人分组的发言

部分 ASR 厂商只返回带说话人标签的逐词结果（word / punctuation），
``TokenStreamAssembler`` 在单次遍历中把它们合并为连续发言：

- 标点直接拼接到前一个词后面（不加空格），不会触发说话人切换
- 词的说话人标签变化时结束当前发言
- 没有说话人标签的 token 视为标签 ""，连续的无标签词归为同一段
- 空文本 token 被忽略；出现在任何词之前的标点无法归属说话人，直接丢弃
- 不校验、不修正时间戳（输入需已按时间排序）
"""

from __future__ import annotations

from typing import Iterable, Optional

from recap.schemas.transcript import Utterance
from recap.services.asr.base import Token, TokenKind


class TokenStreamAssembler:
    def assemble(self, tokens: Iterable[Token]) -> list[Utterance]:
        utterances: list[Utterance] = []
        current_speaker: Optional[str] = None
        buffer = ""
        start_ms = 0
        end_ms = 0

        for token in tokens:
            text = token.text.strip()
            if not text:
                continue

            if token.kind == TokenKind.PUNCTUATION:
                if current_speaker is None:
                    continue
                buffer += text
                end_ms = token.end_ms
                continue

            speaker = token.speaker_label or ""
            if speaker != current_speaker and buffer:
                utterances.append(_close(current_speaker, buffer, start_ms, end_ms))
                buffer = ""

            if buffer:
                buffer = f"{buffer} {text}"
            else:
                buffer = text
                start_ms = token.start_ms
            end_ms = token.end_ms
            current_speaker = speaker

        if buffer:
            utterances.append(_close(current_speaker, buffer, start_ms, end_ms))
        return utterances


def _close(speaker: Optional[str], buffer: str, start_ms: int, end_ms: int) -> Utterance:
    return Utterance(speaker=speaker or "", text=buffer.strip(), start_ms=start_ms, end_ms=end_ms)


def render_text(utterances: Iterable[Utterance]) -> str:
    """把发言拼接为纯文本转写（单个空格分隔）"""
    return " ".join(utterance.text for utterance in utterances)
