from __future__ import annotations

from recap.services.transcript.assembler import ResultAssembler
from recap.services.transcript.pipeline import (
    TranscriptionPipeline,
    create_pipeline,
    process_recording,
)
from recap.services.transcript.summary import SummaryResolver
from recap.services.transcript.title import TitleGenerator

__all__ = [
    "ResultAssembler",
    "SummaryResolver",
    "TitleGenerator",
    "TranscriptionPipeline",
    "create_pipeline",
    "process_recording",
]
