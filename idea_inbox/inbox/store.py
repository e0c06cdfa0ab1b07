from __future__ import annotations

import json
import logging
import threading
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from idea_inbox.core.db import make_engine
from idea_inbox.core.errors import StoreFailure
from idea_inbox.models.base import Base
from idea_inbox.models.tables import NoteRow
from idea_inbox.schemas.notes import Note
from idea_inbox.util.time import as_utc, now_utc

log = logging.getLogger(__name__)

# SQLite INTEGER bounds; ids outside them cannot exist in the table.
MIN_NOTE_ID = -(2**63)
MAX_NOTE_ID = 2**63 - 1


def encode_tags(tags: list[str] | None) -> str:
    return json.dumps(list(tags or []), ensure_ascii=False)


def decode_tags(raw: Any) -> list[str]:
    """Decode the stored tags column. Anything unreadable decodes to an empty list."""
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        log.warning("Inbox: malformed tags column %r; reading as []", raw)
        return []
    if not isinstance(data, list):
        return []
    return [t for t in data if isinstance(t, str)]


def _to_note(row: NoteRow) -> Note:
    return Note(
        id=row.id,
        content=row.content,
        title=row.title,
        tags=decode_tags(row.tags),
        created_at=as_utc(row.created_at),
    )


class InboxStore:
    """SQL-backed inbox of notes.

    Every operation runs in its own transaction and holds the store lock, so
    callers never observe a partially applied create or delete. The store must
    be opened before use and closed at shutdown.
    """

    def __init__(self, db_url: str, *, auto_create: bool = True):
        self._db_url = db_url
        self._auto_create = auto_create
        self._engine: Engine | None = None
        self._sessions: sessionmaker[Session] | None = None
        self._lock = threading.RLock()
        self._last_created_at: datetime | None = None

    # ---- lifecycle ----

    def open(self) -> "InboxStore":
        with self._lock:
            if self._engine is not None:
                return self
            engine = make_engine(self._db_url)
            try:
                if self._auto_create:
                    Base.metadata.create_all(bind=engine)
            except SQLAlchemyError as e:
                engine.dispose()
                raise StoreFailure(f"cannot open inbox database: {e}") from e
            self._engine = engine
            self._sessions = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
            log.info("Inbox: store opened (%s)", engine.url.render_as_string(hide_password=True))
            return self

    def close(self) -> None:
        with self._lock:
            if self._engine is None:
                return
            self._engine.dispose()
            self._engine = None
            self._sessions = None
            log.info("Inbox: store closed")

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def ping(self) -> bool:
        with self._lock:
            try:
                with self._session() as db:
                    db.execute(select(1))
                return True
            except (StoreFailure, SQLAlchemyError):
                return False

    def _session(self) -> Session:
        if self._sessions is None:
            raise StoreFailure("inbox store is not open")
        return self._sessions()

    # ---- operations ----

    def create(self, content: str, title: str | None = None, tags: list[str] | None = None) -> Note:
        if not content or not content.strip():
            raise ValueError("content must not be empty")
        if title is not None and not title.strip():
            title = None

        with self._lock:
            created_at = now_utc()
            # Keep created_at monotonic with id even if the wall clock steps back.
            if self._last_created_at is not None and created_at < self._last_created_at:
                created_at = self._last_created_at

            row = NoteRow(content=content, title=title, tags=encode_tags(tags), created_at=created_at)
            try:
                with self._session() as db:
                    db.add(row)
                    db.commit()
                    note = _to_note(row)
            except SQLAlchemyError as e:
                raise StoreFailure(f"create failed: {e}") from e

            self._last_created_at = created_at

        log.info("Inbox: created note id=%s tags=%s titled=%s", note.id, len(note.tags), note.title is not None)
        return note

    def list_all(self) -> list[Note]:
        with self._lock:
            try:
                with self._session() as db:
                    rows = db.scalars(select(NoteRow).order_by(NoteRow.created_at.desc(), NoteRow.id.desc())).all()
                    return [_to_note(r) for r in rows]
            except SQLAlchemyError as e:
                raise StoreFailure(f"list failed: {e}") from e

    def delete_one(self, note_id: int) -> bool:
        """Delete a note. Unknown ids are a no-op and return False."""
        if not MIN_NOTE_ID <= note_id <= MAX_NOTE_ID:
            return False
        with self._lock:
            try:
                with self._session() as db:
                    deleted = (db.execute(delete(NoteRow).where(NoteRow.id == note_id)).rowcount or 0) > 0
                    db.commit()
            except SQLAlchemyError as e:
                raise StoreFailure(f"delete failed: {e}") from e
        log.info("Inbox: delete id=%s deleted=%s", note_id, deleted)
        return deleted

    def delete_all(self) -> int:
        with self._lock:
            try:
                with self._session() as db:
                    count = db.execute(delete(NoteRow)).rowcount or 0
                    db.commit()
            except SQLAlchemyError as e:
                raise StoreFailure(f"delete_all failed: {e}") from e
        log.info("Inbox: cleared %s notes", count)
        return count
