from __future__ import annotations

from typing import Any

import httpx
import pytest

from recap.core.exceptions import BusinessError, SummaryGenerationError
from recap.i18n.codes import ErrorCode
from recap.services.llm.openrouter import OpenRouterLLMService
from recap.services.transcript.summary import SummaryResolver

_CONFIG = {
    "api_key": "or-key",
    "model": "openai/gpt-4o-mini",
    "http_referer": "https://recap.example.com",
    "app_title": "Recap",
}


def _response(status_code: int, payload: Any) -> httpx.Response:
    return httpx.Response(
        status_code,
        json=payload,
        request=httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions"),
    )


def _build_client(response: httpx.Response | None, error: Exception | None, calls: list[dict[str, Any]]):
    class _Client:
        def __init__(self, *args: object, **kwargs: object) -> None:
            pass

        async def __aenter__(self) -> "_Client":
            return self

        async def __aexit__(
            self, exc_type: type[BaseException] | None, exc: BaseException | None, tb: object | None
        ) -> bool:
            return False

        async def post(
            self, url: str, json: dict[str, object], headers: dict[str, str]
        ) -> httpx.Response:
            calls.append({"url": url, "json": json, "headers": headers})
            if error is not None:
                raise error
            if response is None:
                raise RuntimeError("response is not set")
            return response

    return _Client


@pytest.mark.asyncio
async def test_generate_success(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, Any]] = []
    response = _response(200, {"choices": [{"message": {"content": "  A summary.  "}}]})
    monkeypatch.setattr(httpx, "AsyncClient", _build_client(response, None, calls))

    result = await OpenRouterLLMService(config=_CONFIG).generate("summarize", 1000)

    assert result == "A summary."
    assert calls[0]["url"] == "/chat/completions"
    assert calls[0]["json"]["model"] == "openai/gpt-4o-mini"
    assert calls[0]["json"]["max_tokens"] == 1000
    assert calls[0]["headers"] == {
        "Authorization": "Bearer or-key",
        "HTTP-Referer": "https://recap.example.com",
        "X-Title": "Recap",
    }


@pytest.mark.asyncio
async def test_generate_error_body(monkeypatch: pytest.MonkeyPatch) -> None:
    response = _response(200, {"error": {"message": "model not found"}})
    monkeypatch.setattr(httpx, "AsyncClient", _build_client(response, None, []))

    with pytest.raises(BusinessError) as exc_info:
        await OpenRouterLLMService(config=_CONFIG).generate("summarize", 1000)

    assert exc_info.value.code == ErrorCode.LLM_SERVICE_FAILED


@pytest.mark.asyncio
async def test_generate_empty_content(monkeypatch: pytest.MonkeyPatch) -> None:
    response = _response(200, {"choices": [{"message": {"content": ""}}]})
    monkeypatch.setattr(httpx, "AsyncClient", _build_client(response, None, []))

    with pytest.raises(BusinessError) as exc_info:
        await OpenRouterLLMService(config=_CONFIG).generate("summarize", 1000)

    assert exc_info.value.code == ErrorCode.LLM_SERVICE_FAILED


@pytest.mark.asyncio
async def test_generate_server_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(httpx, "AsyncClient", _build_client(_response(503, {}), None, []))

    with pytest.raises(BusinessError) as exc_info:
        await OpenRouterLLMService(config=_CONFIG).generate("summarize", 1000)

    assert exc_info.value.code == ErrorCode.LLM_SERVICE_UNAVAILABLE


@pytest.mark.asyncio
async def test_generate_network_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(httpx, "AsyncClient", _build_client(None, httpx.ConnectError("down"), []))

    with pytest.raises(BusinessError) as exc_info:
        await OpenRouterLLMService(config=_CONFIG).generate("summarize", 1000)

    assert exc_info.value.code == ErrorCode.LLM_SERVICE_UNAVAILABLE


@pytest.mark.asyncio
async def test_blank_prompt_rejected() -> None:
    with pytest.raises(BusinessError) as exc_info:
        await OpenRouterLLMService(config=_CONFIG).generate("", 10)

    assert exc_info.value.code == ErrorCode.INVALID_PARAMETER


def test_missing_model() -> None:
    with pytest.raises(RuntimeError):
        OpenRouterLLMService(config={"api_key": "or-key", "model": ""})


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"choices": [{"message": None}]},
        {"choices": []},
        {"choices": ["text"]},
        ["not", "an", "object"],
    ],
)
async def test_generate_malformed_body(monkeypatch: pytest.MonkeyPatch, payload: Any) -> None:
    monkeypatch.setattr(httpx, "AsyncClient", _build_client(_response(200, payload), None, []))

    with pytest.raises(BusinessError) as exc_info:
        await OpenRouterLLMService(config=_CONFIG).generate("summarize", 1000)

    assert exc_info.value.code == ErrorCode.LLM_SERVICE_FAILED


@pytest.mark.asyncio
async def test_malformed_body_surfaces_as_summary_error(monkeypatch: pytest.MonkeyPatch) -> None:
    response = _response(200, {"choices": [{"message": None}]})
    monkeypatch.setattr(httpx, "AsyncClient", _build_client(response, None, []))

    resolver = SummaryResolver(OpenRouterLLMService(config=_CONFIG))
    with pytest.raises(SummaryGenerationError) as exc_info:
        await resolver.resolve("We discussed the budget.", "")

    assert exc_info.value.code == ErrorCode.AI_SUMMARY_GENERATION_FAILED
