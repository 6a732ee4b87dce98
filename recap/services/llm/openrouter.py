"""OpenRouter LLM 服务实现（OpenAI 兼容接口）"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from recap.config import settings
from recap.core.exceptions import BusinessError
from recap.core.monitoring import monitor
from recap.core.registry import ServiceMetadata, register_service
from recap.i18n.codes import ErrorCode
from recap.services.config_utils import get_config_value
from recap.services.llm.base import LLMService


@register_service(
    "llm",
    "openrouter",
    metadata=ServiceMetadata(
        name="openrouter",
        service_type="llm",
        priority=20,
        description="OpenRouter LLM 服务（统一模型路由）",
        display_name="OpenRouter",
    ),
)
class OpenRouterLLMService(LLMService):
    def __init__(self, config: Optional[object] = None) -> None:
        api_key = get_config_value(config, "api_key", settings.OPENROUTER_API_KEY)
        base_url = get_config_value(
            config, "base_url", settings.OPENROUTER_BASE_URL or "https://openrouter.ai/api/v1"
        )
        model = get_config_value(config, "model", settings.OPENROUTER_MODEL)

        if not api_key:
            raise RuntimeError("OpenRouter API key is not set")
        if not model:
            raise RuntimeError("OpenRouter model is not set")

        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._http_referer = get_config_value(
            config, "http_referer", settings.OPENROUTER_HTTP_REFERER
        )
        self._app_title = get_config_value(config, "app_title", settings.OPENROUTER_APP_TITLE)
        self._temperature = get_config_value(config, "temperature", 0.3, float)
        self._timeout = get_config_value(config, "timeout", settings.LLM_TIMEOUT_SECONDS, float)

    @property
    def provider(self) -> str:
        return "openrouter"

    @property
    def model_name(self) -> str:
        return self._model

    def _build_headers(self) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self._api_key}"}
        if self._http_referer:
            headers["HTTP-Referer"] = self._http_referer
        if self._app_title:
            headers["X-Title"] = self._app_title
        return headers

    @monitor("llm", "openrouter")
    async def generate(self, prompt: str, max_tokens: int) -> str:
        if not prompt:
            raise BusinessError(ErrorCode.INVALID_PARAMETER, detail="prompt")

        payload: dict[str, Any] = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": self._temperature,
        }

        try:
            async with httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout) as client:
                response = await client.post(
                    "/chat/completions", json=payload, headers=self._build_headers()
                )
                response.raise_for_status()
                result = response.json()
        except httpx.TimeoutException as exc:
            raise BusinessError(
                ErrorCode.LLM_SERVICE_UNAVAILABLE,
                reason=f"OpenRouter request timeout: {exc}",
            ) from exc
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            if status_code == 429 or 500 <= status_code < 600:
                raise BusinessError(
                    ErrorCode.LLM_SERVICE_UNAVAILABLE,
                    reason=f"OpenRouter unavailable (HTTP {status_code})",
                ) from exc
            raise BusinessError(
                ErrorCode.LLM_SERVICE_FAILED,
                reason=f"OpenRouter request failed (HTTP {status_code}): {exc.response.text}",
            ) from exc
        except httpx.HTTPError as exc:
            raise BusinessError(
                ErrorCode.LLM_SERVICE_UNAVAILABLE,
                reason=f"OpenRouter network error: {exc}",
            ) from exc
        except ValueError as exc:
            raise BusinessError(
                ErrorCode.LLM_SERVICE_FAILED, reason=f"Invalid response JSON: {exc}"
            ) from exc

        if not isinstance(result, dict):
            raise BusinessError(ErrorCode.LLM_SERVICE_FAILED, reason="malformed response")
        if "error" in result:
            raise BusinessError(ErrorCode.LLM_SERVICE_FAILED, reason=str(result.get("error")))

        choices = result.get("choices")
        choice = choices[0] if isinstance(choices, list) and choices else None
        message = choice.get("message") if isinstance(choice, dict) else None
        if not isinstance(message, dict):
            raise BusinessError(ErrorCode.LLM_SERVICE_FAILED, reason="malformed response")

        content = message.get("content", "")
        if not isinstance(content, str) or not content.strip():
            raise BusinessError(
                ErrorCode.LLM_SERVICE_FAILED, reason="OpenRouter returned empty content"
            )
        return content.strip()
