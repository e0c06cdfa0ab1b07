from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Note(BaseModel):
    """A captured fleeting thought with optional derived title/tags."""

    model_config = ConfigDict(frozen=True)

    id: int
    content: str
    title: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime


def _require_content(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("content must not be empty")
    return v


class NoteCreate(BaseModel):
    content: str
    title: str | None = None
    tags: list[str] | None = None

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        return _require_content(v)


class CaptureRequest(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        return _require_content(v)
