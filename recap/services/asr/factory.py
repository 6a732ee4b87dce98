from __future__ import annotations

from typing import Optional

from recap.config import settings
from recap.core.registry import ServiceRegistry
from recap.services.asr.base import ASRService


def get_asr_service(provider: Optional[str] = None, config: Optional[object] = None) -> ASRService:
    name = provider or settings.ASR_PROVIDER
    if not name:
        raise RuntimeError("ASR_PROVIDER is not set or unsupported")
    return ServiceRegistry.get("asr", name, config=config)
