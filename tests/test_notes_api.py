from __future__ import annotations

import io
import zipfile

import pytest
from fastapi.testclient import TestClient

from idea_inbox.extraction.base import ExtractionFailure, ExtractionResult
from idea_inbox.export.archive import parse_document
from tests.utils_inbox import FakeExtractor, MEMORY_DB


@pytest.fixture()
def client(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", MEMORY_DB)

    import idea_inbox.main

    # Settings object may already be imported by other tests; enforce runtime overrides.
    from idea_inbox.core.config import settings

    monkeypatch.setattr(settings, "DATABASE_URL", MEMORY_DB)
    monkeypatch.setattr(settings, "DB_AUTO_CREATE", True)
    monkeypatch.setattr(settings, "GEMINI_API_KEY", None)

    app = idea_inbox.main.app
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _use_extractor(client: TestClient, extractor) -> None:
    from idea_inbox.api.deps import get_extractor

    client.app.dependency_overrides[get_extractor] = lambda: extractor


def test_health(client: TestClient):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["ok"] is True
    assert r.json()["deps"]["database"] is True


def test_post_then_get_notes(client: TestClient):
    r = client.post("/notes", json={"content": "Buy milk", "title": "Groceries", "tags": ["errand"]})
    assert r.status_code == 201
    created = r.json()
    assert created["id"] > 0
    assert created["content"] == "Buy milk"
    assert created["title"] == "Groceries"
    assert created["tags"] == ["errand"]
    assert created["created_at"]

    r2 = client.get("/notes")
    assert r2.status_code == 200
    assert r2.json() == [created]


def test_post_defaults_tags_and_title(client: TestClient):
    r = client.post("/notes", json={"content": "plain"})
    assert r.status_code == 201
    assert r.json()["tags"] == []
    assert r.json()["title"] is None

    r = client.post("/notes", json={"content": "null tags", "tags": None})
    assert r.status_code == 201
    assert r.json()["tags"] == []


@pytest.mark.parametrize(
    "body",
    [{}, {"content": ""}, {"content": "   "}, {"content": "x", "tags": "not-a-list"}, {"content": "x", "tags": [1]}],
)
def test_post_rejects_invalid_bodies(client: TestClient, body):
    r = client.post("/notes", json=body)
    assert r.status_code == 422
    assert client.get("/notes").json() == []


def test_list_is_newest_first(client: TestClient):
    ids = [client.post("/notes", json={"content": f"n{i}"}).json()["id"] for i in range(3)]
    got = [n["id"] for n in client.get("/notes").json()]
    assert got == list(reversed(ids))


def test_delete_one_is_idempotent(client: TestClient):
    a = client.post("/notes", json={"content": "a"}).json()
    b = client.post("/notes", json={"content": "b"}).json()

    r = client.delete(f"/notes/{a['id']}")
    assert r.status_code == 204
    assert r.content == b""

    r = client.delete(f"/notes/{a['id']}")
    assert r.status_code == 204
    r = client.delete("/notes/424242")
    assert r.status_code == 204

    assert [n["id"] for n in client.get("/notes").json()] == [b["id"]]


def test_delete_all(client: TestClient):
    for i in range(3):
        client.post("/notes", json={"content": f"n{i}"})

    r = client.delete("/notes")
    assert r.status_code == 204
    assert client.get("/notes").json() == []


def test_capture_with_extraction(client: TestClient):
    ex = FakeExtractor(ExtractionResult(title="Groceries", tags=["errand"]))
    _use_extractor(client, ex)

    r = client.post("/notes/capture", json={"content": "Buy milk"})
    assert r.status_code == 201
    assert ex.calls == ["Buy milk"]

    (note,) = client.get("/notes").json()
    assert note["title"] == "Groceries"
    assert note["tags"] == ["errand"]
    assert note["content"] == "Buy milk"


def test_capture_falls_back_when_extraction_fails(client: TestClient):
    _use_extractor(client, FakeExtractor(ExtractionFailure(reason="schema", cause="title must be a string")))

    r = client.post("/notes/capture", json={"content": "keep me anyway"})
    assert r.status_code == 201
    assert r.json()["title"] is None
    assert r.json()["tags"] == []
    assert r.json()["content"] == "keep me anyway"


def test_capture_without_api_key_still_stores(client: TestClient):
    r = client.post("/notes/capture", json={"content": "offline thought"})
    assert r.status_code == 201
    assert r.json()["title"] is None
    assert [n["content"] for n in client.get("/notes").json()] == ["offline thought"]


def test_capture_rejects_blank_content(client: TestClient):
    r = client.post("/notes/capture", json={"content": "  "})
    assert r.status_code == 422


def test_export_downloads_zip(client: TestClient):
    client.post("/notes", json={"content": "first", "title": "Idea", "tags": ["a", "b", "c"]})
    client.post("/notes", json={"content": "second", "title": "Idea"})
    client.post("/notes", json={"content": "third"})

    r = client.get("/export")
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/zip"
    cd = r.headers["content-disposition"]
    assert cd.startswith('attachment; filename="idea-inbox-export-')
    assert cd.endswith('.zip"')
    assert r.headers["x-note-count"] == "3"

    notes = client.get("/notes").json()
    with zipfile.ZipFile(io.BytesIO(r.content)) as zf:
        names = zf.namelist()
        assert len(names) == 3
        assert len(set(names)) == 3
        bodies = {name: parse_document(zf.read(name).decode("utf-8")) for name in names}

    third = next(n for n in notes if n["content"] == "third")
    assert f"note-{third['id']}.md" in names
    first = next(b for b in bodies.values() if b["content"] == "first")
    assert first["tags"] == ["a", "b", "c"]
    assert first["title"] == "Idea"


def test_export_empty_inbox(client: TestClient):
    r = client.get("/export")
    assert r.status_code == 200
    assert r.headers["x-note-count"] == "0"
    with zipfile.ZipFile(io.BytesIO(r.content)) as zf:
        assert zf.namelist() == []


def test_store_failure_is_reported(client: TestClient):
    client.app.state.store.close()

    r = client.get("/notes")
    assert r.status_code == 503
    assert r.json()["detail"]["code"] == "STORE_FAILURE"

    r = client.post("/notes", json={"content": "x"})
    assert r.status_code == 503

    h = client.get("/health")
    assert h.json()["ok"] is False


def test_delete_huge_id_is_idempotent(client: TestClient):
    keep = client.post("/notes", json={"content": "keep"}).json()

    r = client.delete("/notes/99999999999999999999")
    assert r.status_code == 204
    assert [n["id"] for n in client.get("/notes").json()] == [keep["id"]]
