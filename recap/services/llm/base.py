from __future__ import annotations

from abc import ABC, abstractmethod


class LLMService(ABC):
    """文本生成服务：输入 prompt 与最大 token 预算，返回生成文本"""

    @property
    @abstractmethod
    def provider(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def model_name(self) -> str:
        raise NotImplementedError

    @abstractmethod
    async def generate(self, prompt: str, max_tokens: int) -> str:
        raise NotImplementedError
