"""Transcribe a local recording and print the canonical transcript as JSON."""

from __future__ import annotations

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import logging  # noqa: E402

from recap.config import settings  # noqa: E402
from recap.core.exceptions import BusinessError  # noqa: E402
from recap.core.monitoring import log_metrics_summary  # noqa: E402
from recap.core.registry import ServiceRegistry  # noqa: E402
from recap.schemas.transcript import CanonicalTranscript  # noqa: E402
from recap.services.transcript import create_pipeline, process_recording  # noqa: E402
from recap.services.transcript_store import InMemoryTranscriptStore  # noqa: E402

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--file", type=Path, help="Local audio file")
    source.add_argument("--url", help="Publicly reachable audio URL")
    source.add_argument(
        "--list-providers", action="store_true", help="List registered ASR and LLM providers"
    )
    parser.add_argument("--mime-type", help="Override the detected audio MIME type")
    parser.add_argument("--asr", help="ASR provider (defaults to ASR_PROVIDER)")
    parser.add_argument("--llm", help="LLM provider (defaults to LLM_PROVIDER)")
    args = parser.parse_args(argv)
    if not (args.file or args.url or args.list_providers):
        parser.error("one of --file, --url or --list-providers is required")
    return args


def _print_providers() -> None:
    for service_type in ("asr", "llm"):
        print(f"[{service_type}]")
        for metadata in ServiceRegistry.describe(service_type):
            print(f"  {metadata.name:<14} {metadata.display_name}: {metadata.description}")


async def _transcribe(args: argparse.Namespace) -> CanonicalTranscript:
    pipeline = create_pipeline(asr_provider=args.asr, llm_provider=args.llm)
    if args.url:
        return await pipeline.transcribe_url(args.url)

    mime_type = args.mime_type or mimetypes.guess_type(args.file.name)[0]
    store = InMemoryTranscriptStore()
    recording_id = await process_recording(pipeline, store, args.file.read_bytes(), mime_type)
    logger.info("Recording id: %s", recording_id)
    return await store.get(recording_id)


async def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.list_providers:
        _print_providers()
        return 0

    try:
        record = await _transcribe(args)
    except BusinessError as exc:
        logger.error("Transcription failed [%s]: %s", exc.code.value, exc)
        return 1
    except (RuntimeError, ValueError) as exc:
        # 缺少 API Key 或 provider 名称无效
        logger.error("Pipeline setup failed: %s", exc)
        return 1
    finally:
        log_metrics_summary(logger)

    print(record.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
