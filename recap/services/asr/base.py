from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import httpx

from recap.core.exceptions import BusinessError, ProviderError
from recap.i18n.codes import ErrorCode


@dataclass(frozen=True)
class FeatureRequest:
    """每次转写固定请求的能力，厂商不支持的项由适配器忽略"""

    diarize: bool = True
    punctuate: bool = True
    paragraphs: bool = True
    detect_topics: bool = True
    detect_intents: bool = True
    summarize: bool = True


DEFAULT_FEATURES = FeatureRequest()


@dataclass(frozen=True)
class RawProviderResult:
    vendor: str
    payload: dict[str, Any]


class TokenKind(str, Enum):
    WORD = "word"
    PUNCTUATION = "punctuation"


@dataclass(frozen=True)
class Token:
    text: str
    speaker_label: Optional[str]
    kind: TokenKind
    start_ms: int
    end_ms: int


class ASRService(ABC):
    @property
    @abstractmethod
    def provider(self) -> str:
        raise NotImplementedError

    @abstractmethod
    async def transcribe_url(self, audio_url: str) -> RawProviderResult:
        raise NotImplementedError

    @abstractmethod
    async def transcribe_buffer(self, audio: bytes, mime_type: str) -> RawProviderResult:
        raise NotImplementedError

    def _check_url(self, audio_url: str) -> None:
        if not audio_url or not audio_url.strip():
            raise BusinessError(ErrorCode.INVALID_PARAMETER, detail="audio_url")

    def _check_buffer(self, audio: bytes, mime_type: str) -> None:
        if not audio:
            raise BusinessError(ErrorCode.INVALID_PARAMETER, detail="audio")
        if not mime_type or not mime_type.startswith(("audio/", "video/")):
            raise BusinessError(
                ErrorCode.UNSUPPORTED_FILE_FORMAT, allowed="audio/*, video/*"
            )

    def _result(self, payload: object) -> RawProviderResult:
        if not isinstance(payload, dict):
            raise ProviderError(self.provider, "response is not a JSON object")
        return RawProviderResult(vendor=self.provider, payload=payload)


def extract_http_error(response: httpx.Response) -> str:
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            payload = response.json()
        except json.JSONDecodeError:
            return response.text or "Invalid JSON response"
        if isinstance(payload, dict):
            return str(
                payload.get("err_msg")
                or payload.get("error")
                or payload.get("detail")
                or payload.get("message")
                or payload
            )
        return str(payload)
    return response.text or "Empty response body"


def check_response(vendor: str, response: httpx.Response, action: str) -> None:
    """将厂商 HTTP 错误映射为 ProviderError"""
    if response.status_code < 400:
        return
    reason = f"{action} failed (HTTP {response.status_code}): {extract_http_error(response)}"
    if response.status_code in (401, 403):
        raise ProviderError(vendor, reason, code=ErrorCode.ASR_AUTH_FAILED)
    raise ProviderError(vendor, reason)


def provider_error_from_transport(vendor: str, exc: httpx.HTTPError, action: str) -> ProviderError:
    if isinstance(exc, httpx.TimeoutException):
        return ProviderError(
            vendor, f"{action} timed out: {exc}", code=ErrorCode.ASR_SERVICE_TIMEOUT
        )
    return ProviderError(
        vendor, f"{action} failed: {exc}", code=ErrorCode.ASR_SERVICE_UNAVAILABLE
    )


def parse_json(vendor: str, response: httpx.Response, action: str) -> Any:
    try:
        return response.json()
    except json.JSONDecodeError as exc:
        raise ProviderError(vendor, f"{action}: invalid response JSON: {exc}") from exc
