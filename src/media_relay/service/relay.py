import logging
from typing import Any

from media_relay.attachments import AttachmentKind, AttachmentPart
from media_relay.errors import GenerationFailure, InvalidInput, ProcessingFailure
from media_relay.providers.llm.gemini import GeminiClient
from media_relay.service.scratch import ScratchStore, Upload

logger = logging.getLogger(__name__)
ERROR_LOG_LIMIT = 1000


class RelayService:
    """Validates relay requests, packages attachments and delegates to the generation client."""

    def __init__(self, client: GeminiClient, scratch: ScratchStore) -> None:
        self.client = client
        self.scratch = scratch

    async def generate_from_text(self, prompt: str | None) -> str:
        if not prompt:
            raise InvalidInput("Prompt is required")
        logger.info("relay.text prompt_chars=%d", len(prompt))
        try:
            return await self.client.generate(prompt)
        except Exception as exc:
            logger.error(
                "relay.text.failed type=%s detail=%s",
                exc.__class__.__name__,
                self._extract_error_detail(exc),
            )
            raise GenerationFailure("Failed to generate text") from exc

    async def generate_from_attachment(self, kind: AttachmentKind, upload: Upload | None, prompt: str | None = None) -> str:
        if upload is None or not upload.filename:
            raise InvalidInput(f"No {kind.name} file uploaded.")

        effective_prompt = kind.effective_prompt(prompt)
        try:
            async with self.scratch.persist(upload) as path:
                part = await self.scratch.read_attachment(path, upload.content_type)
                logger.info(
                    "relay.attachment kind=%s mime=%s bytes=%d default_prompt=%s",
                    kind.name,
                    part.mime_type,
                    part.size,
                    effective_prompt == kind.default_prompt,
                )
                return await self._generate_with_attachment(kind, effective_prompt, part)
        except OSError as exc:
            # only persisting or reading the upload raises OSError here
            logger.error("relay.attachment.read_failed kind=%s detail=%s", kind.name, exc)
            raise ProcessingFailure(f"Failed to process {kind.name} file.") from exc

    async def _generate_with_attachment(self, kind: AttachmentKind, prompt: str, part: AttachmentPart) -> str:
        try:
            return await self.client.generate(prompt, [part])
        except Exception as exc:
            logger.error(
                "relay.attachment.failed kind=%s type=%s detail=%s",
                kind.name,
                exc.__class__.__name__,
                self._extract_error_detail(exc),
            )
            raise GenerationFailure(f"Failed to process {kind.name} and prompt.") from exc

    @staticmethod
    def _extract_error_detail(exc: Exception) -> str:
        status_code = getattr(exc, "status_code", None)
        message = getattr(exc, "message", None) or str(exc)
        body: Any = getattr(exc, "body", None)
        details = [f"status_code={status_code}" if status_code is not None else ""]
        if body is not None:
            details.append(f"body={body}")
        details.append(f"message={message}")
        text = " ".join(part for part in details if part).strip()
        return text if len(text) <= ERROR_LOG_LIMIT else f"{text[:ERROR_LOG_LIMIT]}...(truncated)"
