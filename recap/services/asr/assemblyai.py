from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional

import httpx

from recap.config import settings
from recap.core.exceptions import ProviderError
from recap.core.monitoring import monitor
from recap.core.registry import ServiceMetadata, register_service
from recap.i18n.codes import ErrorCode
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

logger = logging.getLogger("recap.services.asr.assemblyai")

_PENDING_STATUSES = {"queued", "processing"}


@register_service(
    "asr",
    "assemblyai",
    metadata=ServiceMetadata(
        name="assemblyai",
        service_type="asr",
        priority=30,
        description="AssemblyAI 异步转写（发言分组 + 逐词结果 + 摘要）",
        display_name="AssemblyAI",
    ),
)
class AssemblyAIASRService(ASRService):
    @property
    def provider(self) -> str:
        return "assemblyai"

    def __init__(
        self,
        config: Optional[object] = None,
        features: FeatureRequest = DEFAULT_FEATURES,
    ) -> None:
        api_key = get_config_value(config, "api_key", settings.ASSEMBLYAI_API_KEY)
        if not api_key:
            raise RuntimeError("ASSEMBLYAI_API_KEY is not set")

        self._api_key = api_key
        self._base_url = get_config_value(
            config, "base_url", settings.ASSEMBLYAI_BASE_URL
        ).rstrip("/")
        self._language_code = get_config_value(
            config, "language_code", settings.ASSEMBLYAI_LANGUAGE
        )
        self._poll_interval = get_config_value(
            config, "poll_interval", settings.ASSEMBLYAI_POLL_INTERVAL or 3, int
        )
        self._max_wait = get_config_value(
            config, "max_wait", settings.ASSEMBLYAI_MAX_WAIT_SECONDS or 600, int
        )
        self._timeout = get_config_value(config, "timeout", settings.ASR_TIMEOUT_SECONDS, float)
        self._features = features

    @monitor("asr", "assemblyai")
    async def transcribe_url(self, audio_url: str) -> RawProviderResult:
        self._check_url(audio_url)
        async with self._client() as client:
            transcript_id = await self._submit_task(client, audio_url)
            payload = await self._poll_task(client, transcript_id)
        return self._result(payload)

    @monitor("asr", "assemblyai")
    async def transcribe_buffer(self, audio: bytes, mime_type: str) -> RawProviderResult:
        self._check_buffer(audio, mime_type)
        async with self._client() as client:
            upload_url = await self._upload(client, audio)
            transcript_id = await self._submit_task(client, upload_url)
            payload = await self._poll_task(client, transcript_id)
        return self._result(payload)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": self._api_key},
            timeout=self._timeout,
        )

    async def _upload(self, client: httpx.AsyncClient, audio: bytes) -> str:
        logger.info("AssemblyAI ASR uploading %s bytes", len(audio))
        try:
            response = await client.post(
                "/upload",
                content=audio,
                headers={"Content-Type": "application/octet-stream"},
            )
        except httpx.HTTPError as exc:
            raise provider_error_from_transport(self.provider, exc, "Upload audio") from exc

        check_response(self.provider, response, "Upload audio")
        data = parse_json(self.provider, response, "Upload audio")
        upload_url = data.get("upload_url") if isinstance(data, dict) else None
        if not upload_url:
            raise ProviderError(self.provider, "Upload audio: missing upload_url")
        return str(upload_url)

    async def _submit_task(self, client: httpx.AsyncClient, audio_url: str) -> str:
        try:
            response = await client.post("/transcript", json=self._build_payload(audio_url))
        except httpx.HTTPError as exc:
            raise provider_error_from_transport(self.provider, exc, "Submit task") from exc

        check_response(self.provider, response, "Submit task")
        data = parse_json(self.provider, response, "Submit task")
        transcript_id = data.get("id") if isinstance(data, dict) else None
        if not transcript_id:
            raise ProviderError(self.provider, "Submit task: missing transcript id")

        logger.info("AssemblyAI ASR submitted transcript %s", transcript_id)
        return str(transcript_id)

    async def _poll_task(self, client: httpx.AsyncClient, transcript_id: str) -> dict[str, Any]:
        deadline = time.time() + self._max_wait
        poll_count = 0

        while time.time() < deadline:
            poll_count += 1
            try:
                response = await client.get(f"/transcript/{transcript_id}")
            except httpx.HTTPError as exc:
                raise provider_error_from_transport(self.provider, exc, "Query task") from exc

            check_response(self.provider, response, "Query task")
            data = parse_json(self.provider, response, "Query task")
            if not isinstance(data, dict):
                raise ProviderError(self.provider, "Query task: response is not a JSON object")

            status = data.get("status")
            logger.info(
                "AssemblyAI ASR poll #%s for transcript %s: status=%s",
                poll_count,
                transcript_id,
                status,
            )

            if status == "completed":
                return data
            if status == "error":
                raise ProviderError(self.provider, str(data.get("error") or "unknown error"))
            if status not in _PENDING_STATUSES:
                raise ProviderError(self.provider, f"Unexpected status: {status}")

            await asyncio.sleep(self._poll_interval)

        raise ProviderError(
            self.provider,
            f"Transcript {transcript_id} not finished after {self._max_wait}s",
            code=ErrorCode.ASR_SERVICE_TIMEOUT,
        )

    def _build_payload(self, audio_url: str) -> dict[str, Any]:
        features = self._features
        payload: dict[str, Any] = {
            "audio_url": audio_url,
            "punctuate": features.punctuate,
            "format_text": True,
            "speaker_labels": features.diarize,
            "iab_categories": features.detect_topics,
        }
        if self._language_code:
            payload["language_code"] = self._language_code
        if features.summarize:
            payload["summarization"] = True
            # conversational 模型要求开启 speaker_labels
            payload["summary_model"] = "conversational" if features.diarize else "informative"
            payload["summary_type"] = "paragraph"
        return payload
