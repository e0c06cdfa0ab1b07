from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from idea_inbox.inbox.store import InboxStore

ROOT = Path(__file__).resolve().parents[1]


def _alembic_cfg(db_url: str) -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", str(ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    return cfg


def test_upgrade_creates_notes_table(tmp_path: Path):
    url = f"sqlite+pysqlite:///{tmp_path / 'migrated.db'}"

    command.upgrade(_alembic_cfg(url), "head")

    engine = create_engine(url)
    try:
        insp = inspect(engine)
        cols = {c["name"]: c for c in insp.get_columns("notes")}
        assert set(cols) == {"id", "content", "title", "tags", "created_at"}
        assert cols["content"]["nullable"] is False
        assert cols["title"]["nullable"] is True
        assert "ix_notes_created_at_id" in {ix["name"] for ix in insp.get_indexes("notes")}
    finally:
        engine.dispose()

    store = InboxStore(url, auto_create=False).open()
    try:
        note = store.create("after migration", tags=["m"])
        assert [n.id for n in store.list_all()] == [note.id]
        store.delete_all()
        again = store.create("after delete")
        assert again.id > note.id
    finally:
        store.close()


def test_downgrade_drops_notes_table(tmp_path: Path):
    url = f"sqlite+pysqlite:///{tmp_path / 'migrated.db'}"
    cfg = _alembic_cfg(url)

    command.upgrade(cfg, "head")
    command.downgrade(cfg, "base")

    engine = create_engine(url)
    try:
        assert "notes" not in inspect(engine).get_table_names()
    finally:
        engine.dispose()
