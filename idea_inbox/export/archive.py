"""Vault export: one Markdown document per note, packed into a zip.

Each document is a front-matter block (title, tags, created), a blank line,
then the raw note content. Filenames are unique within an archive.
"""

from __future__ import annotations

import io
import json
import re
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable

from idea_inbox.core.errors import ExportFailure
from idea_inbox.schemas.notes import Note

FRONT_MATTER_DELIM = "---"
# Stem budget in UTF-8 bytes; leaves room for "-<id>-<n>.md" under the usual 255-byte limit.
MAX_STEM_BYTES = 200

_UNSAFE_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f\x7f]')
_TAG_NEEDS_QUOTES = re.compile(r'[,\[\]"\n\r]')


@dataclass(frozen=True)
class ArchiveDocument:
    filename: str
    body: str
    note_id: int
    created_at: datetime | None = None


@dataclass(frozen=True)
class Archive:
    documents: list[ArchiveDocument] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.documents)

    @property
    def filenames(self) -> list[str]:
        return [d.filename for d in self.documents]


# ---- filenames ----


def _stem_for(note: Note) -> str:
    title = (note.title or "").strip()
    stem = _UNSAFE_CHARS.sub("-", title)
    stem = stem.encode("utf-8")[:MAX_STEM_BYTES].decode("utf-8", errors="ignore").strip(" .")
    return stem or f"note-{note.id}"


def derive_filename(note: Note) -> str:
    return f"{_stem_for(note)}.md"


def _unique_filename(note: Note, taken: set[str]) -> str:
    stem = _stem_for(note)
    candidate = f"{stem}.md"
    if candidate.casefold() not in taken:
        return candidate
    candidate = f"{stem}-{note.id}.md"
    n = 2
    while candidate.casefold() in taken:
        candidate = f"{stem}-{note.id}-{n}.md"
        n += 1
    return candidate


# ---- front matter ----


def _scalar(value: str) -> str:
    if "\n" in value or "\r" in value or value != value.strip() or value.startswith('"'):
        return json.dumps(value, ensure_ascii=False)
    return value


def _tag(value: str) -> str:
    if _TAG_NEEDS_QUOTES.search(value) or value != value.strip() or not value:
        return json.dumps(value, ensure_ascii=False)
    return value


def render_document(note: Note) -> str:
    tags = ", ".join(_tag(t) for t in note.tags)
    return (
        f"{FRONT_MATTER_DELIM}\n"
        f"title: {_scalar(note.title or '')}\n"
        f"tags: [{tags}]\n"
        f"created: {note.created_at.isoformat()}\n"
        f"{FRONT_MATTER_DELIM}\n"
        f"\n"
        f"{note.content}"
    )


def _parse_scalar(value: str) -> str:
    if value.startswith('"'):
        return json.loads(value)
    return value


def _parse_tags(value: str) -> list[str]:
    value = value.strip()
    if not (value.startswith("[") and value.endswith("]")):
        raise ValueError(f"tags must be a bracketed list: {value!r}")
    inner = value[1:-1]
    tags: list[str] = []
    decoder = json.JSONDecoder()
    i = 0
    while i < len(inner):
        while i < len(inner) and inner[i] == " ":
            i += 1
        if i >= len(inner):
            break
        if inner[i] == '"':
            tag, i = decoder.raw_decode(inner, i)
        else:
            end = inner.find(",", i)
            end = len(inner) if end < 0 else end
            tag, i = inner[i:end].strip(), end
        tags.append(tag)
        while i < len(inner) and inner[i] == " ":
            i += 1
        if i < len(inner):
            if inner[i] != ",":
                raise ValueError(f"unexpected {inner[i]!r} in tags")
            i += 1
    return tags


def parse_document(body: str) -> dict:
    """Inverse of render_document: returns {title, tags, created, content}."""

    head = f"{FRONT_MATTER_DELIM}\n"
    if not body.startswith(head):
        raise ValueError("document has no front matter")
    end = body.find(f"\n{FRONT_MATTER_DELIM}\n", len(head) - 1)
    if end < 0:
        raise ValueError("front matter is not closed")

    meta: dict = {}
    for line in body[len(head) : end].split("\n"):
        key, sep, value = line.partition(":")
        if not sep:
            continue
        meta[key.strip()] = value[1:] if value.startswith(" ") else value

    rest = body[end + len(FRONT_MATTER_DELIM) + 2 :]
    if rest.startswith("\n"):
        rest = rest[1:]

    return {
        "title": _parse_scalar(meta.get("title", "")),
        "tags": _parse_tags(meta.get("tags", "[]")),
        "created": meta.get("created", ""),
        "content": rest,
    }


# ---- archive ----


def build_archive(notes: Iterable[Note]) -> Archive:
    """Build the export for `notes` in the given order. Never touches the store."""

    taken: set[str] = set()
    docs: list[ArchiveDocument] = []
    for note in notes:
        filename = _unique_filename(note, taken)
        taken.add(filename.casefold())
        docs.append(
            ArchiveDocument(filename=filename, body=render_document(note), note_id=note.id, created_at=note.created_at)
        )
    return Archive(documents=docs)


def _zip_date_time(dt: datetime | None) -> tuple[int, int, int, int, int, int]:
    if dt is None or dt.year < 1980:
        return (1980, 1, 1, 0, 0, 0)
    return (dt.year, dt.month, dt.day, dt.hour, dt.minute, dt.second)


def archive_to_zip(archive: Archive) -> bytes:
    buf = io.BytesIO()
    try:
        with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for doc in archive.documents:
                info = zipfile.ZipInfo(doc.filename, date_time=_zip_date_time(doc.created_at))
                info.compress_type = zipfile.ZIP_DEFLATED
                zf.writestr(info, doc.body.encode("utf-8"))
    except (OSError, ValueError, MemoryError, zipfile.LargeZipFile) as e:
        raise ExportFailure(f"archive assembly failed: {type(e).__name__}: {e}") from e
    return buf.getvalue()


def export_filename(day: date) -> str:
    return f"idea-inbox-export-{day.isoformat()}.zip"
