"""Speechmatics 批量转写服务实现

流程：提交任务（multipart，URL 模式使用 fetch_data）→ 轮询任务状态 → 拉取 json-v2 结果。
结果只包含逐词 token 流（word / punctuation），不提供分组好的发言。
"""

from __future__ import annotations

import asyncio
import json
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

logger = logging.getLogger("recap.services.asr.speechmatics")

_FAILED_STATUSES = {"rejected", "deleted", "expired"}


@register_service(
    "asr",
    "speechmatics",
    metadata=ServiceMetadata(
        name="speechmatics",
        service_type="asr",
        priority=20,
        description="Speechmatics 批量转写（token 流 + 说话人分离）",
        display_name="Speechmatics",
    ),
)
class SpeechmaticsASRService(ASRService):
    @property
    def provider(self) -> str:
        return "speechmatics"

    def __init__(
        self,
        config: Optional[object] = None,
        features: FeatureRequest = DEFAULT_FEATURES,
    ) -> None:
        api_key = get_config_value(config, "api_key", settings.SPEECHMATICS_API_KEY)
        if not api_key:
            raise RuntimeError("SPEECHMATICS_API_KEY is not set")

        self._api_key = api_key
        self._base_url = get_config_value(
            config, "base_url", settings.SPEECHMATICS_BASE_URL
        ).rstrip("/")
        self._language = get_config_value(config, "language", settings.SPEECHMATICS_LANGUAGE)
        self._operating_point = get_config_value(
            config, "operating_point", settings.SPEECHMATICS_OPERATING_POINT
        )
        self._poll_interval = get_config_value(
            config, "poll_interval", settings.SPEECHMATICS_POLL_INTERVAL or 3, int
        )
        self._max_wait = get_config_value(
            config, "max_wait", settings.SPEECHMATICS_MAX_WAIT_SECONDS or 600, int
        )
        self._timeout = get_config_value(config, "timeout", settings.ASR_TIMEOUT_SECONDS, float)
        self._features = features

    @monitor("asr", "speechmatics")
    async def transcribe_url(self, audio_url: str) -> RawProviderResult:
        self._check_url(audio_url)
        job_config = self._build_job_config(audio_url)
        files = {"config": (None, json.dumps(job_config))}
        return await self._run_job(files)

    @monitor("asr", "speechmatics")
    async def transcribe_buffer(self, audio: bytes, mime_type: str) -> RawProviderResult:
        self._check_buffer(audio, mime_type)
        job_config = self._build_job_config(None)
        files = {
            "config": (None, json.dumps(job_config)),
            "data_file": ("recording", audio, mime_type),
        }
        return await self._run_job(files)

    async def _run_job(self, files: dict[str, Any]) -> RawProviderResult:
        headers = {"Authorization": f"Bearer {self._api_key}"}
        async with httpx.AsyncClient(
            base_url=self._base_url, headers=headers, timeout=self._timeout
        ) as client:
            job_id = await self._submit_job(client, files)
            await self._wait_for_job(client, job_id)
            payload = await self._fetch_transcript(client, job_id)
        return self._result(payload)

    async def _submit_job(self, client: httpx.AsyncClient, files: dict[str, Any]) -> str:
        try:
            response = await client.post("/jobs", files=files)
        except httpx.HTTPError as exc:
            raise provider_error_from_transport(self.provider, exc, "Submit job") from exc

        check_response(self.provider, response, "Submit job")
        data = parse_json(self.provider, response, "Submit job")
        job_id = data.get("id") if isinstance(data, dict) else None
        if not job_id:
            raise ProviderError(self.provider, "Submit job: missing job id")

        logger.info("Speechmatics ASR submitted job %s", job_id)
        return str(job_id)

    async def _wait_for_job(self, client: httpx.AsyncClient, job_id: str) -> None:
        deadline = time.time() + self._max_wait
        poll_count = 0

        while time.time() < deadline:
            poll_count += 1
            try:
                response = await client.get(f"/jobs/{job_id}")
            except httpx.HTTPError as exc:
                raise provider_error_from_transport(self.provider, exc, "Query job") from exc

            check_response(self.provider, response, "Query job")
            data = parse_json(self.provider, response, "Query job")
            job = data.get("job") if isinstance(data, dict) else None
            status = job.get("status") if isinstance(job, dict) else None

            logger.info(
                "Speechmatics ASR poll #%s for job %s: status=%s", poll_count, job_id, status
            )

            if status == "done":
                return
            if status in _FAILED_STATUSES:
                errors = job.get("errors") or []
                reason = "; ".join(
                    str(item.get("message", item)) if isinstance(item, dict) else str(item)
                    for item in errors
                )
                raise ProviderError(self.provider, f"Job {status}: {reason or 'no details'}")

            await asyncio.sleep(self._poll_interval)

        raise ProviderError(
            self.provider,
            f"Job {job_id} not finished after {self._max_wait}s",
            code=ErrorCode.ASR_SERVICE_TIMEOUT,
        )

    async def _fetch_transcript(self, client: httpx.AsyncClient, job_id: str) -> Any:
        try:
            response = await client.get(
                f"/jobs/{job_id}/transcript", params={"format": "json-v2"}
            )
        except httpx.HTTPError as exc:
            raise provider_error_from_transport(self.provider, exc, "Fetch transcript") from exc

        check_response(self.provider, response, "Fetch transcript")
        return parse_json(self.provider, response, "Fetch transcript")

    def _build_job_config(self, audio_url: Optional[str]) -> dict[str, Any]:
        features = self._features
        transcription_config: dict[str, Any] = {
            "language": self._language,
            "operating_point": self._operating_point,
        }
        if features.diarize:
            transcription_config["diarization"] = "speaker"

        job_config: dict[str, Any] = {
            "type": "transcription",
            "transcription_config": transcription_config,
        }
        if audio_url:
            job_config["fetch_data"] = {"url": audio_url}
        if features.summarize:
            job_config["summarization_config"] = {
                "content_type": "conversational",
                "summary_length": "brief",
                "summary_type": "paragraphs",
            }
        if features.detect_topics:
            job_config["topic_detection_config"] = {}
        # 不支持段落分组与意图识别
        return job_config
