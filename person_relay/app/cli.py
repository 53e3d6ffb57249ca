"""Convenience CLI for serving the relay or pushing a single image through it."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Optional, Sequence

from person_relay.adapters.detection_client import DetectionError
from person_relay.adapters.image_store import StorageError
from person_relay.app.factory import build_service
from person_relay.app.logging_setup import setup_logging
from person_relay.app.settings import AppSettings, get_settings


def _dump(obj: object) -> str:
    return json.dumps(
        obj,
        indent=2,
        default=lambda value: value.isoformat() if hasattr(value, "isoformat") else str(value),
    )


def _serve(settings: AppSettings, args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(
        "person_relay.app.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_config=None,
    )
    return 0


def _process(settings: AppSettings, args: argparse.Namespace) -> int:
    image: Path = args.image
    if not image.is_file():
        print(f"Image not found: {image}", file=sys.stderr)
        return 2

    service = build_service(settings)
    try:
        with image.open("rb") as handle:
            result = service.handle_upload(image.name, handle)
    except (StorageError, DetectionError) as exc:
        print(f"Processing failed: {exc}", file=sys.stderr)
        return 1

    summary = asdict(result)
    if result.evicted is not None:
        summary["evicted"] = result.evicted.model_dump()
    print("Upload result:")
    print(_dump(summary))
    print("Recent detections:")
    print(_dump(service.recent_detections()))
    return 0


def _weather(settings: AppSettings, args: argparse.Namespace) -> int:
    service = build_service(settings)
    report = service.weather.current()
    print(report.condition)
    if report.error:
        print(f"({report.error})", file=sys.stderr)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Person detection relay.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP relay.")
    serve.add_argument("--host", default=None, help="Bind address (default: RELAY_HOST or 0.0.0.0).")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: RELAY_PORT or 8081).")
    serve.set_defaults(handler=_serve)

    process = subparsers.add_parser("process", help="Run one local image through the pipeline.")
    process.add_argument("image", type=Path, help="Path to the image to evaluate.")
    process.set_defaults(handler=_process)

    weather = subparsers.add_parser("weather", help="Print the current weather label.")
    weather.set_defaults(handler=_weather)

    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(settings)
    return args.handler(settings, args)


if __name__ == "__main__":
    sys.exit(main())
