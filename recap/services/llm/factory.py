from __future__ import annotations

from typing import Optional

from recap.config import settings
from recap.core.registry import ServiceRegistry
from recap.services.llm.base import LLMService


def get_llm_service(provider: Optional[str] = None, config: Optional[object] = None) -> LLMService:
    name = provider or settings.LLM_PROVIDER
    if not name:
        raise RuntimeError("LLM_PROVIDER is not set or unsupported")
    return ServiceRegistry.get("llm", name, config=config)
