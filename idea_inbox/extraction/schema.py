"""Validation of the model's free-form reply.

The response schema sent to the service is advisory only; the reply is
re-checked here as a pure function so it can be tested without a live call.
"""

from __future__ import annotations

import json
import re

from idea_inbox.extraction.base import Extraction, ExtractionFailure, ExtractionResult

# Sent as generationConfig.responseSchema (OpenAPI subset used by Gemini).
RESPONSE_SCHEMA: dict = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING"},
        "tags": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
    "required": ["title", "tags"],
}

_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?```$", re.DOTALL)


def _strip_fence(raw: str) -> str:
    text = raw.strip()
    m = _FENCE_RE.match(text)
    return m.group(1).strip() if m else text


def parse_extraction(raw: str | None) -> Extraction:
    """Turn the raw reply text into an ExtractionResult, or an ExtractionFailure.

    - non-JSON or a non-object payload fails;
    - a missing/null title becomes "", a title of any other non-string type fails;
    - missing or non-array tags become []; non-string tags are dropped.
    """

    if raw is None or not raw.strip():
        return ExtractionFailure(reason="no_text", cause="empty response")

    try:
        data = json.loads(_strip_fence(raw))
    except ValueError as e:
        return ExtractionFailure(reason="invalid_json", cause=f"{e}: {raw[:200]}")

    if not isinstance(data, dict):
        return ExtractionFailure(reason="schema", cause=f"expected object, got {type(data).__name__}")

    title = data.get("title")
    if title is None:
        title = ""
    elif not isinstance(title, str):
        return ExtractionFailure(reason="schema", cause=f"title must be a string, got {type(title).__name__}")

    raw_tags = data.get("tags")
    tags: list[str] = []
    if isinstance(raw_tags, list):
        for t in raw_tags:
            if isinstance(t, str) and t.strip():
                tags.append(t.strip())

    return ExtractionResult(title=title.strip(), tags=tags)
