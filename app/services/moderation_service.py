import json
from typing import Any, Dict, Optional

from google.genai import errors as genai_errors
from pydantic import ValidationError

from app.clients.llm_client import GeminiClient
from app.schemas.moderation import request_model_for
from app.core.logger import logger
from app.core.exceptions import (
    BadRequestException,
    MethodNotAllowedException,
    ServerMisconfiguredException,
    UpstreamContractViolationException,
    UpstreamEmptyException,
    UpstreamParseException,
    UpstreamTransportException,
)
from app.core.moderation_contract import (
    CANONICAL_CONTENT_FIELD,
    RESPONSE_SCHEMA,
    SYSTEM_PROMPT,
    VERDICT_FIELDS,
)


def extract_content(body: Any, content_field: str = CANONICAL_CONTENT_FIELD) -> str:
    """
    Pull the text to moderate out of a decoded request body.

    Args:
        body: Decoded JSON request body
        content_field: Name of the field carrying the content

    Returns:
        The content string

    Raises:
        BadRequestException: If the body is not an object or the field is
            missing, not a string, or blank
    """
    try:
        request = request_model_for(content_field).model_validate(body)
    except ValidationError as e:
        raise BadRequestException(
            f"Missing {content_field} in request body.",
            field=content_field,
            details="; ".join(error["msg"] for error in e.errors())
        ) from e
    return request.content


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def extract_payload_text(response: Any) -> Optional[str]:
    """Return the text of the first candidate's first content part, if any."""
    candidates = getattr(response, "candidates", None)
    if not candidates:
        return None

    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None)
    if not parts:
        return None

    text = getattr(parts[0], "text", None)
    if not isinstance(text, str) or not text.strip():
        return None
    return text


def parse_verdict(text: str) -> Dict[str, Any]:
    """
    Parse the Gemini payload into a verdict dict.

    Only the presence of the verdict keys is checked. Values are passed
    through untouched.

    Raises:
        UpstreamParseException: If the text is not valid JSON
        UpstreamContractViolationException: If the JSON is not an object
            holding every verdict field
    """
    try:
        parsed = json.loads(text, parse_constant=_reject_constant)
    except ValueError as e:
        raise UpstreamParseException(details=str(e)) from e

    if not isinstance(parsed, dict):
        raise UpstreamContractViolationException(
            details=f"expected a JSON object, got {type(parsed).__name__}"
        )

    missing = [field for field in VERDICT_FIELDS if field not in parsed]
    if missing:
        raise UpstreamContractViolationException(missing_fields=missing)

    return {field: parsed[field] for field in VERDICT_FIELDS}


async def handle_moderation(
    method: str,
    body: Any,
    client: Optional[GeminiClient],
    content_field: str = CANONICAL_CONTENT_FIELD,
) -> Dict[str, Any]:
    """
    Moderate one piece of user content through Gemini.

    Every check runs before the single outbound call. There is no retry: one
    request produces exactly one verdict or one typed error.

    Args:
        method: HTTP method of the inbound request
        body: Decoded JSON request body
        client: Configured Gemini client, ``None`` when the credential is missing
        content_field: Body field carrying the content to moderate

    Returns:
        Verdict dict with exactly ``is_safe``, ``categories_flagged`` and
        ``moderator_comment``

    Raises:
        MethodNotAllowedException: If the method is not POST
        ServerMisconfiguredException: If no Gemini client is configured
        BadRequestException: If the content field is missing or blank
        UpstreamTransportException: If the Gemini call fails
        UpstreamEmptyException: If Gemini returns no structured content
        UpstreamParseException: If the Gemini payload is not a valid verdict
    """
    if method.upper() != "POST":
        raise MethodNotAllowedException(method.upper())

    if client is None:
        raise ServerMisconfiguredException("GEMINI_API_KEY")

    content = extract_content(body, content_field)

    logger.info(
        "Dispatching moderation request to Gemini",
        extra={
            "content_field": content_field,
            "content_length": len(content),
            "model": client.model
        }
    )

    try:
        response = await client.generate_content(content, SYSTEM_PROMPT, RESPONSE_SCHEMA)
    except genai_errors.APIError as e:
        logger.error(
            "Gemini API returned an error",
            extra={"error": str(e), "status_code": e.code},
            exc_info=True
        )
        raise UpstreamTransportException(
            "Failed to moderate content: Gemini API error.",
            details=f"{e.code}: {e.message}"
        ) from e
    except Exception as e:
        logger.error(
            "Gemini request failed",
            extra={"error": str(e)},
            exc_info=True
        )
        raise UpstreamTransportException(
            "Failed to moderate content.",
            details=str(e)
        ) from e

    text = extract_payload_text(response)
    if text is None:
        logger.error("Gemini API returned no structured content")
        raise UpstreamEmptyException()

    try:
        verdict = parse_verdict(text)
    except UpstreamParseException as e:
        logger.error(
            "Gemini payload could not be used as a verdict",
            extra={"error_code": e.error_code, "error": e.details},
            exc_info=True
        )
        raise

    logger.info(
        "Moderation completed",
        extra={
            "is_safe": verdict["is_safe"],
            "categories_flagged": verdict["categories_flagged"]
        }
    )
    return verdict
