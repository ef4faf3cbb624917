import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from media_relay.api.schemas import ErrorResponse, GenerateResponse, GenerateTextRequest
from media_relay.attachments import KINDS, AttachmentKind
from media_relay.config import Settings, get_settings
from media_relay.errors import RelayError
from media_relay.providers.llm.gemini import GeminiClient
from media_relay.service.relay import RelayService
from media_relay.service.scratch import ScratchStore

logger = logging.getLogger(__name__)
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def build_service(settings: Settings) -> RelayService:
    return RelayService(
        client=GeminiClient(settings),
        scratch=ScratchStore(settings.upload_dir),
    )


def endpoint_paths() -> list[str]:
    return ["/generate-text", *[f"/generate-from-{name}" for name in KINDS]]


def create_app(settings: Settings | None = None, service: RelayService | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    relay = service or build_service(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        relay.scratch.ensure()
        if not settings.gemini_api_key:
            logger.warning("config.missing GEMINI_API_KEY is empty; generation requests will fail")
        logger.info("relay.startup model=%s upload_dir=%s", settings.gemini_model, relay.scratch.directory)
        for path in endpoint_paths():
            logger.info("relay.endpoint POST %s", path)
        yield

    app = FastAPI(title="media-relay", version="0.1.0", lifespan=lifespan)
    app.state.relay = relay
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.exception_handler(RelayError)
    async def relay_error_handler(_: Request, exc: RelayError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.get("/healthz")
    async def healthz() -> dict:
        return {"status": "ok"}

    @app.post(
        "/generate-text",
        response_model=GenerateResponse,
        responses=ERROR_RESPONSES,
        openapi_extra={
            "requestBody": {"content": {"application/json": {"schema": GenerateTextRequest.model_json_schema()}}},
        },
    )
    async def generate_text(request: Request) -> GenerateResponse:
        text = await relay.generate_from_text(await _read_prompt(request))
        return GenerateResponse(result=text)

    for kind in KINDS.values():
        app.add_api_route(
            f"/generate-from-{kind.name}",
            _attachment_endpoint(relay, kind),
            methods=["POST"],
            response_model=GenerateResponse,
            responses=ERROR_RESPONSES,
            name=f"generate_from_{kind.name}",
        )

    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")

    return app


def _attachment_endpoint(relay: RelayService, kind: AttachmentKind):
    async def generate_from_attachment(
        upload: UploadFile | str | None = File(default=None, alias=kind.field),
        prompt: str | None = Form(default=None),
    ) -> GenerateResponse:
        # a plain form value under the file field counts as no file
        file = None if isinstance(upload, str) else upload
        text = await relay.generate_from_attachment(kind, file, prompt)
        return GenerateResponse(result=text)

    return generate_from_attachment


async def _read_prompt(request: Request) -> str | None:
    """Return the JSON ``prompt`` string, or None for any other body shape."""
    if "json" not in request.headers.get("content-type", ""):
        return None
    try:
        payload = await request.json()
    except ValueError:
        logger.info("relay.text.unparsable_body")
        return None
    prompt = payload.get("prompt") if isinstance(payload, dict) else None
    return prompt if isinstance(prompt, str) else None
