from functools import lru_cache
from pydantic import BaseModel, Field, create_model, field_validator
from typing import List, Optional, Type


# ---- Requests ----
class ModerationRequest(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Content cannot be empty")
        return value


@lru_cache(maxsize=None)
def request_model_for(content_field: str) -> Type[ModerationRequest]:
    """Return a ModerationRequest variant that reads ``content`` from ``content_field``."""
    if content_field == "content":
        return ModerationRequest
    return create_model(
        f"ModerationRequest_{content_field}",
        __base__=ModerationRequest,
        content=(str, Field(alias=content_field)),
    )


# ---- Responses ----
class ModerationVerdict(BaseModel):
    is_safe: bool
    categories_flagged: List[str]
    moderator_comment: str


class ErrorResponse(BaseModel):
    error: str
    error_code: str
    details: Optional[str] = None
