from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from recap.config import settings
from recap.core.exceptions import BusinessError
from recap.core.monitoring import monitor
from recap.core.registry import ServiceMetadata, register_service
from recap.i18n.codes import ErrorCode
from recap.services.config_utils import get_config_value
from recap.services.llm.base import LLMService

logger = logging.getLogger("recap.services.llm.anthropic")


@register_service(
    "llm",
    "anthropic",
    metadata=ServiceMetadata(
        name="anthropic",
        service_type="llm",
        priority=10,
        description="Anthropic Messages API",
        display_name="Anthropic Claude",
    ),
)
class AnthropicLLMService(LLMService):
    def __init__(self, config: Optional[object] = None) -> None:
        api_key = get_config_value(config, "api_key", settings.ANTHROPIC_API_KEY)
        if not api_key:
            raise RuntimeError("ANTHROPIC_API_KEY is not set")

        self._api_key = api_key
        self._base_url = get_config_value(config, "base_url", settings.ANTHROPIC_BASE_URL).rstrip("/")
        self._model = get_config_value(config, "model", settings.ANTHROPIC_MODEL)
        self._api_version = get_config_value(config, "api_version", settings.ANTHROPIC_VERSION)
        self._temperature = get_config_value(config, "temperature", None)
        self._timeout = get_config_value(config, "timeout", settings.LLM_TIMEOUT_SECONDS, float)

    @property
    def provider(self) -> str:
        return "anthropic"

    @property
    def model_name(self) -> str:
        return self._model

    @monitor("llm", "anthropic")
    async def generate(self, prompt: str, max_tokens: int) -> str:
        if not prompt:
            raise BusinessError(ErrorCode.INVALID_PARAMETER, detail="prompt")

        payload: dict[str, Any] = {
            "model": self._model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if self._temperature is not None:
            payload["temperature"] = self._temperature
        headers = {
            "x-api-key": self._api_key,
            "anthropic-version": self._api_version,
        }

        try:
            async with httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout) as client:
                response = await client.post("/messages", json=payload, headers=headers)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as exc:
            raise BusinessError(
                ErrorCode.LLM_SERVICE_UNAVAILABLE, reason=f"Anthropic request timeout: {exc}"
            ) from exc
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            # 529 为 Anthropic 过载
            if status_code == 429 or 500 <= status_code < 600:
                raise BusinessError(
                    ErrorCode.LLM_SERVICE_UNAVAILABLE,
                    reason=f"Anthropic unavailable (HTTP {status_code})",
                ) from exc
            raise BusinessError(
                ErrorCode.LLM_SERVICE_FAILED,
                reason=f"Anthropic request failed (HTTP {status_code}): {exc.response.text}",
            ) from exc
        except httpx.HTTPError as exc:
            raise BusinessError(ErrorCode.LLM_SERVICE_UNAVAILABLE, reason=str(exc)) from exc
        except ValueError as exc:
            raise BusinessError(
                ErrorCode.LLM_SERVICE_FAILED, reason=f"Invalid response JSON: {exc}"
            ) from exc

        blocks = data.get("content") if isinstance(data, dict) else None
        text_parts = [
            str(block.get("text") or "")
            for block in (blocks if isinstance(blocks, list) else [])
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        content = "".join(text_parts).strip()
        if not content:
            raise BusinessError(ErrorCode.LLM_SERVICE_FAILED, reason="empty response")

        usage = data.get("usage")
        usage = usage if isinstance(usage, dict) else {}
        logger.debug(
            "Anthropic generation done: model=%s input_tokens=%s output_tokens=%s",
            self._model,
            usage.get("input_tokens"),
            usage.get("output_tokens"),
        )
        return content
