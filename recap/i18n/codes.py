from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    INVALID_PARAMETER = 40001
    UNSUPPORTED_FILE_FORMAT = 40002

    ASR_SERVICE_FAILED = 51001
    ASR_SERVICE_TIMEOUT = 51002
    ASR_SERVICE_UNAVAILABLE = 51003
    ASR_AUTH_FAILED = 51004
    TRANSCRIPT_EMPTY = 51005

    LLM_SERVICE_UNAVAILABLE = 52001
    LLM_SERVICE_FAILED = 52002
    AI_SUMMARY_GENERATION_FAILED = 52003
    AI_TITLE_GENERATION_FAILED = 52004
