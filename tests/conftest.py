import base64
from pathlib import Path

import pytest

from media_relay.attachments import AttachmentPart
from media_relay.config import Settings

PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


class FakeGenerationClient:
    """Records calls and the scratch files that existed while each call ran."""

    def __init__(self, text: str = "hi", error: Exception | None = None, scratch_dir: Path | None = None) -> None:
        self.text = text
        self.error = error
        self.scratch_dir = scratch_dir
        self.calls: list[tuple[str, list[AttachmentPart] | None]] = []
        self.scratch_seen: list[list[str]] = []

    async def generate(self, prompt: str, attachments: list[AttachmentPart] | None = None) -> str:
        self.calls.append((prompt, attachments))
        if self.scratch_dir is not None and self.scratch_dir.exists():
            self.scratch_seen.append(sorted(p.name for p in self.scratch_dir.iterdir()))
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        GEMINI_API_KEY="test-key",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        STATIC_DIR=str(tmp_path / "public"),
    )


@pytest.fixture
def upload_dir(settings: Settings) -> Path:
    return Path(settings.upload_dir)


def scratch_files(directory: Path) -> list[str]:
    if not directory.exists():
        return []
    return sorted(p.name for p in directory.iterdir())
