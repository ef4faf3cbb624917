import base64
from dataclasses import dataclass

DEFAULT_MIME_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class AttachmentKind:
    name: str
    field: str
    default_prompt: str

    def effective_prompt(self, prompt: str | None) -> str:
        text = (prompt or "").strip()
        return text or self.default_prompt


IMAGE = AttachmentKind(name="image", field="image", default_prompt="Describe this image.")
DOCUMENT = AttachmentKind(name="document", field="document", default_prompt="Summarize this document.")
AUDIO = AttachmentKind(name="audio", field="audio", default_prompt="Transcribe this audio.")

KINDS: dict[str, AttachmentKind] = {kind.name: kind for kind in (IMAGE, DOCUMENT, AUDIO)}


@dataclass(frozen=True)
class AttachmentPart:
    """Base64 payload tagged with its MIME type, sent inline to the provider."""

    mime_type: str
    data: str

    @classmethod
    def from_bytes(cls, content: bytes, mime_type: str | None) -> "AttachmentPart":
        return cls(
            mime_type=(mime_type or "").strip() or DEFAULT_MIME_TYPE,
            data=base64.b64encode(content).decode("ascii"),
        )

    @property
    def size(self) -> int:
        return len(self.data) * 3 // 4 - self.data[-2:].count("=")

    def as_inline_data(self) -> dict:
        return {"inlineData": {"mimeType": self.mime_type, "data": self.data}}
