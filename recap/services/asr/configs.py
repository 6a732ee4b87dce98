"""ASR 服务配置 Schema

各厂商的显式配置，传入适配器构造函数；未设置的字段回退到 settings。
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from recap.core.service_config import ServiceConfig


def _normalize_base_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not value.startswith(("http://", "https://")):
        raise ValueError("base_url must start with http:// or https://")
    return value.rstrip("/")


class DeepgramASRConfig(ServiceConfig):
    """Deepgram 预录音频识别配置

    Attributes:
        api_key: Deepgram API Key
        base_url: API 基础 URL
        model: 模型名称（如 "nova-2"）
        language: 语言（如 "en-US"）
    """

    api_key: str = Field(..., description="Deepgram API Key", min_length=1)
    base_url: Optional[str] = Field(default=None, description="API 基础 URL")
    model: Optional[str] = Field(default=None, description="模型名称")
    language: Optional[str] = Field(default=None, description="识别语言")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_base_url(v)


class SpeechmaticsASRConfig(ServiceConfig):
    """Speechmatics 批量识别配置

    Attributes:
        api_key: Speechmatics API Key
        base_url: API 基础 URL
        language: 语言（如 "en"）
        operating_point: 识别精度（"standard" 或 "enhanced"）
        poll_interval: 轮询间隔（秒）
        max_wait: 最大等待时间（秒）
    """

    api_key: str = Field(..., description="Speechmatics API Key", min_length=1)
    base_url: Optional[str] = Field(default=None, description="API 基础 URL")
    language: Optional[str] = Field(default=None, description="识别语言")
    operating_point: Optional[str] = Field(default=None, description="识别精度")
    poll_interval: Optional[int] = Field(default=None, description="轮询间隔（秒）", ge=1, le=60)
    max_wait: Optional[int] = Field(default=None, description="最大等待时间（秒）", ge=1)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_base_url(v)


class AssemblyAIASRConfig(ServiceConfig):
    """AssemblyAI 转写配置

    Attributes:
        api_key: AssemblyAI API Key
        base_url: API 基础 URL
        language_code: 语言（如 "en_us"）
        poll_interval: 轮询间隔（秒）
        max_wait: 最大等待时间（秒）
    """

    api_key: str = Field(..., description="AssemblyAI API Key", min_length=1)
    base_url: Optional[str] = Field(default=None, description="API 基础 URL")
    language_code: Optional[str] = Field(default=None, description="识别语言")
    poll_interval: Optional[int] = Field(default=None, description="轮询间隔（秒）", ge=1, le=60)
    max_wait: Optional[int] = Field(default=None, description="最大等待时间（秒）", ge=1)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_base_url(v)
