from __future__ import annotations

import logging
from dataclasses import dataclass

from idea_inbox.extraction.base import Extraction, ExtractionFailure, Extractor
from idea_inbox.inbox.store import InboxStore
from idea_inbox.schemas.notes import Note

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureResult:
    note: Note
    extraction: Extraction

    @property
    def fell_back(self) -> bool:
        return isinstance(self.extraction, ExtractionFailure)


def capture_note(store: InboxStore, extractor: Extractor, content: str) -> CaptureResult:
    """Extract title/tags for `content`, then persist it.

    Extraction is an enrichment: any failure falls back to an untitled,
    untagged note so the capture itself is never lost. Store errors propagate.
    """

    log.debug("Capture: extracting (%s chars)", len(content or ""))
    try:
        extraction = extractor.extract(content)
    except Exception as e:
        log.warning("Capture: extractor raised %s; falling back", type(e).__name__)
        extraction = ExtractionFailure(reason="exception", cause=f"{type(e).__name__}: {e}")

    if isinstance(extraction, ExtractionFailure):
        log.info("Capture: extraction failed (%s); persisting without title/tags", extraction.reason)
        note = store.create(content, title=None, tags=[])
    else:
        note = store.create(content, title=extraction.title or None, tags=list(extraction.tags))

    return CaptureResult(note=note, extraction=extraction)
