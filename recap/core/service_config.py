from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class ServiceConfig(BaseModel):
    """服务配置基类

    未设置的字段（None）由服务实现回退到 settings 中的对应值。

    Attributes:
        enabled: 是否启用该服务
        timeout: 单次 HTTP 请求超时时间（秒）
    """

    enabled: bool = True
    timeout: Optional[float] = None

    model_config = ConfigDict(
        extra="allow",
        validate_assignment=True,
    )
