#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


def _bootstrap_pythonpath() -> None:
    import sys

    src = _repo_root() / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))


_bootstrap_pythonpath()

from media_relay.api.app import build_service, configure_logging  # noqa: E402
from media_relay.attachments import KINDS  # noqa: E402
from media_relay.config import get_settings  # noqa: E402
from media_relay.errors import RelayError  # noqa: E402


@dataclass
class LocalUpload:
    filename: str
    content_type: str | None
    file: BinaryIO


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send one prompt (optionally with a file) through the relay service.")
    parser.add_argument("--prompt", default="", help="Prompt text. Attachment kinds fall back to their default prompt.")
    parser.add_argument("--file", default="", help="Local file to attach.")
    parser.add_argument("--kind", choices=sorted(KINDS), default="image", help="Attachment kind used with --file.")
    parser.add_argument("--mime-type", default="", help="Override the guessed MIME type of --file.")
    return parser.parse_args()


async def run(args: argparse.Namespace) -> str:
    settings = get_settings()
    service = build_service(settings)
    if not args.file:
        return await service.generate_from_text(args.prompt)

    path = Path(args.file)
    mime_type = args.mime_type or mimetypes.guess_type(path.name)[0]
    with path.open("rb") as f:
        upload = LocalUpload(filename=path.name, content_type=mime_type, file=f)
        return await service.generate_from_attachment(KINDS[args.kind], upload, args.prompt or None)


def main() -> int:
    args = parse_args()
    configure_logging(get_settings().log_level)
    try:
        print(asyncio.run(run(args)))
    except RelayError as exc:
        print(f"error: {exc.message}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
