from __future__ import annotations

from recap.services.asr.assemblyai import AssemblyAIASRService
from recap.services.asr.base import (
    DEFAULT_FEATURES,
    ASRService,
    FeatureRequest,
    RawProviderResult,
    Token,
    TokenKind,
)
from recap.services.asr.deepgram import DeepgramASRService
from recap.services.asr.factory import get_asr_service
from recap.services.asr.speechmatics import SpeechmaticsASRService

__all__ = [
    "ASRService",
    "AssemblyAIASRService",
    "DEFAULT_FEATURES",
    "DeepgramASRService",
    "FeatureRequest",
    "RawProviderResult",
    "SpeechmaticsASRService",
    "Token",
    "TokenKind",
    "get_asr_service",
]
