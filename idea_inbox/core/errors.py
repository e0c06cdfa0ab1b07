from __future__ import annotations


class StoreFailure(Exception):
    """Persistence-layer error. Not recoverable locally; surfaced to the caller."""


class ExportFailure(Exception):
    """Archive assembly error. No partial archive is ever delivered."""
