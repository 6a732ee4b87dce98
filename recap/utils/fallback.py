"""有序回退链工具

空字符串、纯空白字符串与非字符串值一律视为“缺失”，不会被当作有效值接受。
"""

from __future__ import annotations

from typing import Optional


def present_text(value: object) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def first_present(*candidates: object) -> Optional[str]:
    for candidate in candidates:
        value = present_text(candidate)
        if value is not None:
            return value
    return None
