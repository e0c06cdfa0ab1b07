from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from idea_inbox.core.config import Settings
from idea_inbox.extraction.base import Extraction, ExtractionFailure
from idea_inbox.extraction.schema import RESPONSE_SCHEMA, parse_extraction

log = logging.getLogger(__name__)

PROMPT = (
    "Process this fleeting note for an Obsidian vault.\n"
    "Generate a concise title (no extension) and relevant tags.\n"
    "Note: {content}"
)


def _truncate(s: str, n: int = 200) -> str:
    s = s or ""
    return s if len(s) <= n else s[:n] + "…"


def _candidate_text(data: dict) -> str | None:
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return None
    content = candidates[0].get("content")
    if not isinstance(content, dict):
        return None
    parts = content.get("parts")
    if not isinstance(parts, list):
        return None
    texts = [p.get("text") for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
    return "".join(texts) if texts else None


@dataclass(frozen=True)
class GeminiExtractor:
    """Derives {title, tags} for a note through Gemini's generateContent endpoint."""

    api_key: str | None
    model: str = "gemini-3-flash-preview"
    api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout_s: float = 15.0

    @classmethod
    def from_settings(cls, s: Settings) -> "GeminiExtractor":
        return cls(
            api_key=s.GEMINI_API_KEY,
            model=s.GEMINI_MODEL,
            api_base=s.GEMINI_API_BASE,
            timeout_s=s.EXTRACTION_TIMEOUT_S,
        )

    def build_request(self, content: str) -> dict:
        return {
            "contents": [{"role": "user", "parts": [{"text": PROMPT.format(content=content)}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    def extract(self, content: str) -> Extraction:
        if not content or not content.strip():
            return ExtractionFailure(reason="empty_content")
        if not self.api_key:
            return ExtractionFailure(reason="missing_api_key", cause="GEMINI_API_KEY is not set")

        url = f"{self.api_base.rstrip('/')}/models/{self.model}:generateContent"
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}

        try:
            resp = httpx.post(url, headers=headers, json=self.build_request(content), timeout=self.timeout_s)
        except httpx.TimeoutException as e:
            log.warning("Extraction: timed out after %ss", self.timeout_s)
            return ExtractionFailure(reason="timeout", cause=f"{type(e).__name__}: {e}")
        except httpx.HTTPError as e:
            log.warning("Extraction: transport error: %s", e)
            return ExtractionFailure(reason="transport", cause=f"{type(e).__name__}: {e}")

        if resp.status_code >= 400:
            log.warning("Extraction: gemini returned HTTP %s", resp.status_code)
            return ExtractionFailure(reason=f"http_{resp.status_code}", cause=_truncate(resp.text))

        try:
            data = resp.json()
        except ValueError:
            return ExtractionFailure(reason="invalid_json", cause=f"non-JSON envelope: {_truncate(resp.text)}")
        if not isinstance(data, dict):
            return ExtractionFailure(reason="no_text", cause="unexpected envelope")

        result = parse_extraction(_candidate_text(data))
        if isinstance(result, ExtractionFailure):
            log.warning("Extraction: rejected model output (%s): %s", result.reason, result.cause)
        return result
