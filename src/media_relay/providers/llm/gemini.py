import json
import logging
from typing import Any

import httpx

from media_relay.attachments import AttachmentPart
from media_relay.config import Settings
from media_relay.errors import ProviderError

logger = logging.getLogger(__name__)
PAYLOAD_LOG_LIMIT = 4000
ERROR_LOG_LIMIT = 1000

HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


class GeminiClient:
    """Gemini generateContent client with compact request/response logs."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self.model = settings.gemini_model
        self.timeout = settings.gemini_timeout_seconds
        self.generate_url = f"{settings.gemini_base_url}/models/{self.model}:generateContent"
        self.safety_settings = [
            {"category": category, "threshold": settings.gemini_safety_threshold} for category in HARM_CATEGORIES
        ]
        self._transport = transport

    async def generate(self, prompt: str, attachments: list[AttachmentPart] | None = None) -> str:
        parts: list[dict[str, Any]] = [{"text": prompt}]
        parts.extend(part.as_inline_data() for part in attachments or [])
        request_body = {
            "contents": [{"role": "user", "parts": parts}],
            "safetySettings": self.safety_settings,
        }
        logger.info(
            "gemini.request model=%s prompt=%s attachments=%s",
            self.model,
            self._clip(prompt, 80),
            [f"{part.mime_type}:{part.size}" for part in attachments or []] or "none",
        )
        logger.debug(
            "gemini.request.payload=%s",
            self._clip(self._to_json(self._redact(request_body)), PAYLOAD_LOG_LIMIT),
        )

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            http_response = await client.post(
                self.generate_url,
                params={"key": self.settings.gemini_api_key},
                json=request_body,
            )
        if http_response.status_code >= 400:
            body = self._clip(http_response.text, ERROR_LOG_LIMIT)
            logger.error("gemini.error status_code=%d body=%s", http_response.status_code, body)
            raise ProviderError(
                f"Gemini returned HTTP {http_response.status_code}",
                status_code=http_response.status_code,
                body=body,
            )

        response = http_response.json()
        logger.debug(
            "gemini.response.payload=%s",
            self._clip(self._to_json(response), PAYLOAD_LOG_LIMIT),
        )
        text = self._extract_text(response)
        logger.info("gemini.response model=%s chars=%d", self.model, len(text))
        return text

    @staticmethod
    def _extract_text(response: dict[str, Any]) -> str:
        candidates = response.get("candidates") or []
        if not candidates:
            block_reason = (response.get("promptFeedback") or {}).get("blockReason")
            raise ProviderError(f"Gemini returned no candidates block_reason={block_reason or 'unknown'}")

        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []
        texts = [str(part["text"]) for part in parts if isinstance(part, dict) and "text" in part]
        if not texts:
            finish_reason = candidate.get("finishReason")
            raise ProviderError(f"Gemini returned no text finish_reason={finish_reason or 'unknown'}")
        return "".join(texts)

    @staticmethod
    def _redact(request_body: dict[str, Any]) -> dict[str, Any]:
        redacted_parts: list[dict[str, Any]] = []
        for content in request_body.get("contents", []):
            for part in content.get("parts", []):
                inline = part.get("inlineData")
                if inline:
                    redacted_parts.append(
                        {"inlineData": {"mimeType": inline["mimeType"], "data": f"<{len(inline['data'])} b64 chars>"}}
                    )
                else:
                    redacted_parts.append(part)
        return {**request_body, "contents": [{"role": "user", "parts": redacted_parts}]}

    @staticmethod
    def _clip(text: str, limit: int) -> str:
        normalized = " ".join(text.split()).strip()
        if len(normalized) <= limit:
            return normalized
        return f"{normalized[:limit]}...(truncated)"

    @staticmethod
    def _to_json(payload: Any) -> str:
        try:
            return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
        except Exception:
            return str(payload)
