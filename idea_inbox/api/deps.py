from __future__ import annotations

from fastapi import Request

from idea_inbox.extraction.base import Extractor
from idea_inbox.inbox.store import InboxStore


def get_store(request: Request) -> InboxStore:
    return request.app.state.store


def get_extractor(request: Request) -> Extractor:
    return request.app.state.extractor
