from __future__ import annotations

from recap.services.llm.anthropic import AnthropicLLMService
from recap.services.llm.base import LLMService
from recap.services.llm.factory import get_llm_service
from recap.services.llm.openrouter import OpenRouterLLMService

__all__ = ["LLMService", "AnthropicLLMService", "OpenRouterLLMService", "get_llm_service"]
