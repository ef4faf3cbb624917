import asyncio
import logging
import re
import shutil
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import BinaryIO, Protocol

from media_relay.attachments import AttachmentPart

logger = logging.getLogger(__name__)
_SUFFIX_RE = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


class Upload(Protocol):
    filename: str | None
    content_type: str | None
    file: BinaryIO


class ScratchStore:
    """Per-request scratch files for uploads; every file is removed when its scope exits."""

    def __init__(self, directory: str | Path, chunk_size: int = 1024 * 1024) -> None:
        self.directory = Path(directory)
        self.chunk_size = chunk_size

    def ensure(self) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        return self.directory

    @asynccontextmanager
    async def persist(self, upload: Upload) -> AsyncIterator[Path]:
        path = self.directory / f"{uuid.uuid4().hex}{self._suffix(upload.filename)}"
        try:
            await asyncio.to_thread(self._copy, upload.file, path)
            logger.info("scratch.persisted path=%s", path.name)
            yield path
        finally:
            try:
                await asyncio.to_thread(path.unlink, missing_ok=True)
                logger.info("scratch.removed path=%s", path.name)
            except OSError:
                logger.exception("scratch.remove_failed path=%s", path)

    async def read_attachment(self, path: Path, mime_type: str | None) -> AttachmentPart:
        content = await asyncio.to_thread(path.read_bytes)
        return AttachmentPart.from_bytes(content, mime_type)

    def _copy(self, source: BinaryIO, path: Path) -> None:
        self.ensure()
        source.seek(0)
        with path.open("xb") as target:
            shutil.copyfileobj(source, target, self.chunk_size)

    @staticmethod
    def _suffix(filename: str | None) -> str:
        suffix = Path(filename or "").suffix
        return suffix.lower() if _SUFFIX_RE.match(suffix) else ""
