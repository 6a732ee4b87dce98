from __future__ import annotations

from typing import Any

import httpx
import pytest

from recap.config import settings
from recap.core.exceptions import BusinessError, ProviderError
from recap.i18n.codes import ErrorCode
from recap.services.asr.base import FeatureRequest
from recap.services.asr.configs import DeepgramASRConfig
from recap.services.asr.deepgram import DeepgramASRService

_CONFIG = {"api_key": "dg-key", "base_url": "https://dg.example.com/v1", "model": "nova-2"}


def _response(status_code: int, payload: Any = None, text: str | None = None) -> httpx.Response:
    request = httpx.Request("POST", "https://dg.example.com/v1/listen")
    if text is not None:
        return httpx.Response(status_code, text=text, request=request)
    return httpx.Response(status_code, json=payload, request=request)


def _build_client(response: httpx.Response | None, error: Exception | None, calls: list[dict[str, Any]]):
    class _Client:
        def __init__(self, *args: object, **kwargs: Any) -> None:
            calls.append({"client": kwargs})

        async def __aenter__(self) -> "_Client":
            return self

        async def __aexit__(
            self, exc_type: type[BaseException] | None, exc: BaseException | None, tb: object | None
        ) -> bool:
            return False

        async def post(self, url: str, **kwargs: Any) -> httpx.Response:
            calls.append({"url": url, **kwargs})
            if error is not None:
                raise error
            if response is None:
                raise RuntimeError("response is not set")
            return response

    return _Client


def _ok_payload() -> dict[str, object]:
    return {
        "metadata": {"request_id": "req-42"},
        "results": {"channels": [{"alternatives": [{"transcript": "hello"}]}]},
    }


@pytest.mark.asyncio
async def test_transcribe_url_success(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, Any]] = []
    monkeypatch.setattr(httpx, "AsyncClient", _build_client(_response(200, _ok_payload()), None, calls))

    service = DeepgramASRService(config=_CONFIG)
    result = await service.transcribe_url("https://example.com/call.m4a")

    assert result.vendor == "deepgram"
    assert result.payload["metadata"]["request_id"] == "req-42"
    assert calls[0]["client"]["base_url"] == "https://dg.example.com/v1"
    request = calls[1]
    assert request["url"] == "/listen"
    assert request["json"] == {"url": "https://example.com/call.m4a"}
    assert request["headers"]["Authorization"] == "Token dg-key"
    assert request["headers"]["Content-Type"] == "application/json"
    params = request["params"]
    assert params["model"] == "nova-2"
    assert params["diarize"] == "true"
    assert params["utterances"] == "true"
    assert params["paragraphs"] == "true"
    assert params["topics"] == "true"
    assert params["intents"] == "true"
    assert params["summarize"] == "v2"


@pytest.mark.asyncio
async def test_transcribe_buffer_sends_raw_audio(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, Any]] = []
    monkeypatch.setattr(httpx, "AsyncClient", _build_client(_response(200, _ok_payload()), None, calls))

    service = DeepgramASRService(config=DeepgramASRConfig(api_key="dg-key"))
    await service.transcribe_buffer(b"\x00\x01\x02", "audio/x-m4a")

    request = calls[1]
    assert request["content"] == b"\x00\x01\x02"
    assert request["headers"]["Content-Type"] == "audio/x-m4a"
    assert "json" not in request


def test_disabled_features_are_not_requested() -> None:
    service = DeepgramASRService(
        config=_CONFIG, features=FeatureRequest(detect_intents=False, summarize=False)
    )

    params = service._build_params()

    assert "intents" not in params
    assert "summarize" not in params
    assert params["diarize"] == "true"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status_code", "expected"),
    [
        (401, ErrorCode.ASR_AUTH_FAILED),
        (403, ErrorCode.ASR_AUTH_FAILED),
        (400, ErrorCode.ASR_SERVICE_FAILED),
        (502, ErrorCode.ASR_SERVICE_FAILED),
    ],
)
async def test_http_errors(
    monkeypatch: pytest.MonkeyPatch, status_code: int, expected: ErrorCode
) -> None:
    response = _response(status_code, {"err_msg": "Invalid credentials"})
    monkeypatch.setattr(httpx, "AsyncClient", _build_client(response, None, []))

    with pytest.raises(ProviderError) as exc_info:
        await DeepgramASRService(config=_CONFIG).transcribe_url("https://example.com/a.mp3")

    assert exc_info.value.code == expected
    assert exc_info.value.vendor == "deepgram"
    assert "Invalid credentials" in exc_info.value.cause


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (httpx.ReadTimeout("slow"), ErrorCode.ASR_SERVICE_TIMEOUT),
        (httpx.ConnectError("refused"), ErrorCode.ASR_SERVICE_UNAVAILABLE),
    ],
)
async def test_transport_errors(
    monkeypatch: pytest.MonkeyPatch, error: Exception, expected: ErrorCode
) -> None:
    monkeypatch.setattr(httpx, "AsyncClient", _build_client(None, error, []))

    with pytest.raises(ProviderError) as exc_info:
        await DeepgramASRService(config=_CONFIG).transcribe_url("https://example.com/a.mp3")

    assert exc_info.value.code == expected


@pytest.mark.asyncio
async def test_error_body_with_success_status(monkeypatch: pytest.MonkeyPatch) -> None:
    payload = {"err_code": "INVALID_AUDIO", "err_msg": "corrupt"}
    monkeypatch.setattr(httpx, "AsyncClient", _build_client(_response(200, payload), None, []))

    with pytest.raises(ProviderError) as exc_info:
        await DeepgramASRService(config=_CONFIG).transcribe_url("https://example.com/a.mp3")

    assert "INVALID_AUDIO" in exc_info.value.cause


@pytest.mark.asyncio
async def test_invalid_json(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        httpx, "AsyncClient", _build_client(_response(200, text="<html>"), None, [])
    )

    with pytest.raises(ProviderError) as exc_info:
        await DeepgramASRService(config=_CONFIG).transcribe_url("https://example.com/a.mp3")

    assert exc_info.value.code == ErrorCode.ASR_SERVICE_FAILED


@pytest.mark.asyncio
async def test_blank_url_rejected_before_request(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, Any]] = []
    monkeypatch.setattr(httpx, "AsyncClient", _build_client(None, None, calls))

    with pytest.raises(BusinessError) as exc_info:
        await DeepgramASRService(config=_CONFIG).transcribe_url("  ")

    assert exc_info.value.code == ErrorCode.INVALID_PARAMETER
    assert calls == []


def test_missing_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "DEEPGRAM_API_KEY", None)

    with pytest.raises(RuntimeError):
        DeepgramASRService()
