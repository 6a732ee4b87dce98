"""LLM 服务配置 Schema"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from recap.core.service_config import ServiceConfig


class AnthropicConfig(ServiceConfig):
    """Anthropic Messages API 配置

    Attributes:
        api_key: API 密钥
        base_url: API 基础 URL
        model: 模型名称（如 "claude-3-5-haiku-latest"）
        api_version: anthropic-version 请求头
        temperature: 温度参数（0.0-1.0）
    """

    api_key: str = Field(..., description="Anthropic API 密钥", min_length=1)
    base_url: Optional[str] = Field(default=None, description="API 基础 URL")
    model: Optional[str] = Field(default=None, description="模型名称")
    api_version: Optional[str] = Field(default=None, description="API 版本")
    temperature: Optional[float] = Field(default=None, description="温度参数", ge=0.0, le=1.0)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip("/") if v else v


class OpenRouterConfig(ServiceConfig):
    """OpenRouter 配置（OpenAI 兼容接口）

    Attributes:
        api_key: API 密钥
        base_url: API 基础 URL
        model: 模型 ID（如 "openai/gpt-4o-mini"）
        http_referer: HTTP-Referer 请求头（OpenRouter 排行统计用）
        app_title: X-Title 请求头
        temperature: 温度参数（0.0-2.0）
    """

    api_key: str = Field(..., description="OpenRouter API 密钥", min_length=1)
    base_url: Optional[str] = Field(default=None, description="API 基础 URL")
    model: Optional[str] = Field(default=None, description="模型 ID")
    http_referer: Optional[str] = Field(default=None, description="HTTP-Referer")
    app_title: Optional[str] = Field(default=None, description="X-Title")
    temperature: Optional[float] = Field(default=None, description="温度参数", ge=0.0, le=2.0)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip("/") if v else v
