# app/clients/llm_client.py
from typing import Any, Dict, Optional

from fastapi import Request
from google import genai
from google.genai import types

from app.core.config import Settings
from app.core.logger import logger


class GeminiClient:
    """Thin wrapper around the Gemini SDK client used for moderation calls."""

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash", timeout_ms: Optional[int] = None):
        http_options = types.HttpOptions(timeout=timeout_ms) if timeout_ms else None
        self.model = model
        self._client = genai.Client(api_key=api_key, http_options=http_options)

    async def generate_content(
        self,
        content: str,
        system_instruction: str,
        response_schema: Dict[str, Any],
    ):
        """Send one schema-constrained generation request and return the raw SDK response."""
        return await self._client.aio.models.generate_content(
            model=self.model,
            contents=[types.Content(role="user", parts=[types.Part(text=content)])],
            config=types.GenerateContentConfig(
                system_instruction=system_instruction,
                response_mime_type="application/json",
                response_schema=response_schema,
            ),
        )


def build_llm_client(settings: Settings) -> Optional[GeminiClient]:
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set, moderation requests will be rejected")
        return None

    logger.info(
        "Gemini client configured",
        extra={"model": settings.gemini_model}
    )
    return GeminiClient(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        timeout_ms=settings.gemini_timeout_ms,
    )


def get_llm_client(request: Request) -> Optional[GeminiClient]:
    """FastAPI dependency returning the process-wide client built at startup."""
    return getattr(request.app.state, "llm_client", None)
