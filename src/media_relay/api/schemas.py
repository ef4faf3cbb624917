from pydantic import BaseModel, Field


class GenerateTextRequest(BaseModel):
    prompt: str | None = Field(default=None, description="Prompt forwarded to the generation client.")


class GenerateResponse(BaseModel):
    result: str


class ErrorResponse(BaseModel):
    error: str
