class RelayError(Exception):
    """Request-terminal failure rendered as ``{"error": message}``."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidInput(RelayError):
    status_code = 400


class ProcessingFailure(RelayError):
    """Local I/O failure while handling an uploaded attachment."""


class GenerationFailure(RelayError):
    """The generation client failed; the cause is only logged."""


class ProviderError(Exception):
    """Raised by the Gemini client for error statuses and blocked or empty responses."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body
