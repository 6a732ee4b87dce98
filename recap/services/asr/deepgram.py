from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from recap.config import settings
from recap.core.exceptions import ProviderError
from recap.core.monitoring import monitor
from recap.core.registry import ServiceMetadata, register_service
from recap.services.asr.base import (
    DEFAULT_FEATURES,
    ASRService,
    FeatureRequest,
    RawProviderResult,
    check_response,
    parse_json,
    provider_error_from_transport,
)
from recap.services.config_utils import get_config_value

logger = logging.getLogger("recap.services.asr.deepgram")


@register_service(
    "asr",
    "deepgram",
    metadata=ServiceMetadata(
        name="deepgram",
        service_type="asr",
        priority=10,
        description="Deepgram 预录音频识别（同步接口，原生摘要/话题/意图）",
        display_name="Deepgram",
    ),
)
class DeepgramASRService(ASRService):
    @property
    def provider(self) -> str:
        return "deepgram"

    def __init__(
        self,
        config: Optional[object] = None,
        features: FeatureRequest = DEFAULT_FEATURES,
    ) -> None:
        api_key = get_config_value(config, "api_key", settings.DEEPGRAM_API_KEY)
        if not api_key:
            raise RuntimeError("DEEPGRAM_API_KEY is not set")

        self._api_key = api_key
        self._base_url = get_config_value(config, "base_url", settings.DEEPGRAM_BASE_URL).rstrip("/")
        self._model = get_config_value(config, "model", settings.DEEPGRAM_MODEL)
        self._language = get_config_value(config, "language", settings.DEEPGRAM_LANGUAGE)
        self._timeout = get_config_value(config, "timeout", settings.ASR_TIMEOUT_SECONDS, float)
        self._features = features

    @monitor("asr", "deepgram")
    async def transcribe_url(self, audio_url: str) -> RawProviderResult:
        self._check_url(audio_url)
        logger.info("Deepgram ASR transcribing url=%s model=%s", audio_url, self._model)
        return await self._listen("application/json", json_body={"url": audio_url})

    @monitor("asr", "deepgram")
    async def transcribe_buffer(self, audio: bytes, mime_type: str) -> RawProviderResult:
        self._check_buffer(audio, mime_type)
        logger.info(
            "Deepgram ASR transcribing buffer: %s bytes (%s) model=%s",
            len(audio),
            mime_type,
            self._model,
        )
        return await self._listen(mime_type, content=audio)

    async def _listen(
        self,
        content_type: str,
        *,
        json_body: Optional[dict[str, Any]] = None,
        content: Optional[bytes] = None,
    ) -> RawProviderResult:
        headers = {
            "Authorization": f"Token {self._api_key}",
            "Content-Type": content_type,
        }
        params = self._build_params()

        try:
            async with httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout) as client:
                if json_body is not None:
                    response = await client.post(
                        "/listen", params=params, headers=headers, json=json_body
                    )
                else:
                    response = await client.post(
                        "/listen", params=params, headers=headers, content=content
                    )
        except httpx.HTTPError as exc:
            raise provider_error_from_transport(self.provider, exc, "Listen request") from exc

        check_response(self.provider, response, "Listen request")
        data = parse_json(self.provider, response, "Listen request")

        if isinstance(data, dict) and data.get("err_code"):
            raise ProviderError(self.provider, f"{data.get('err_code')}: {data.get('err_msg')}")
        if not isinstance(data, dict) or not isinstance(data.get("results"), dict):
            raise ProviderError(self.provider, "missing results")

        metadata = data.get("metadata")
        request_id = metadata.get("request_id") if isinstance(metadata, dict) else None
        logger.info("Deepgram ASR completed: request_id=%s", request_id)
        return self._result(data)

    def _build_params(self) -> dict[str, str]:
        features = self._features
        params = {"model": self._model, "smart_format": "true"}
        if self._language:
            params["language"] = self._language
        if features.punctuate:
            params["punctuate"] = "true"
        if features.diarize:
            params["diarize"] = "true"
            params["utterances"] = "true"
        if features.paragraphs:
            params["paragraphs"] = "true"
        if features.detect_topics:
            params["topics"] = "true"
        if features.detect_intents:
            params["intents"] = "true"
        if features.summarize:
            params["summarize"] = "v2"
        return params
