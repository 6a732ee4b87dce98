from __future__ import annotations

from recap.config import settings
from recap.core.i18n import get_message
from recap.i18n.codes import ErrorCode


class BusinessError(Exception):
    def __init__(self, code: ErrorCode, **kwargs: str) -> None:
        super().__init__(get_message(code, settings.LOCALE, **kwargs))
        self.code = code
        self.kwargs = kwargs


class ProviderError(BusinessError):
    """ASR 厂商调用失败（网络、鉴权、厂商处理错误）"""

    def __init__(
        self,
        vendor: str,
        cause: str,
        code: ErrorCode = ErrorCode.ASR_SERVICE_FAILED,
    ) -> None:
        super().__init__(code, vendor=vendor, reason=cause)
        self.vendor = vendor
        self.cause = cause


class NoTranscriptError(BusinessError):
    def __init__(self, vendor: str) -> None:
        super().__init__(ErrorCode.TRANSCRIPT_EMPTY, vendor=vendor)
        self.vendor = vendor


class SummaryGenerationError(BusinessError):
    def __init__(self, reason: str) -> None:
        super().__init__(ErrorCode.AI_SUMMARY_GENERATION_FAILED, reason=reason)


class TitleGenerationError(BusinessError):
    def __init__(self, reason: str) -> None:
        super().__init__(ErrorCode.AI_TITLE_GENERATION_FAILED, reason=reason)
