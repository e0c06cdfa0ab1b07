from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class ExtractionResult:
    title: str
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ExtractionFailure:
    reason: str  # missing_api_key | empty_content | timeout | transport | http_<status> | no_text | invalid_json | schema | exception
    cause: str | None = None


Extraction = ExtractionResult | ExtractionFailure


class Extractor(Protocol):
    def extract(self, content: str) -> Extraction: ...
