from __future__ import annotations

from typing import Any, Callable, Mapping, Optional


def get_config_value(
    config: Any,
    key: str,
    fallback: Any,
    cast: Optional[Callable[[Any], Any]] = None,
) -> Any:
    """优先读取显式配置（Mapping 或对象属性），缺省时回退到 settings 中的值"""
    if config is None:
        value = fallback
    elif isinstance(config, Mapping):
        value = config.get(key)
        value = fallback if value is None else value
    else:
        value = getattr(config, key, None)
        value = fallback if value is None else value
    if cast is not None and value is not None:
        return cast(value)
    return value
