import os

import pytest
from sqlalchemy import create_engine, inspect, text

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory

from tourcrm.db.models import Base

pytestmark = pytest.mark.e2e


def _service_root() -> str:
    here = os.path.dirname(__file__)
    return os.path.abspath(os.path.join(here, "..", ".."))


def _alembic_config(db_url: str, monkeypatch) -> Config:
    """Alembic config without the ini file so logging setup is left untouched."""
    cfg = Config()
    cfg.set_main_option("script_location", os.path.join(_service_root(), "migrations"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    # env.py prefers these over sqlalchemy.url
    monkeypatch.setenv("TEST_DATABASE_URL", db_url)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    return cfg


def _table_names(db_url: str) -> set:
    engine = create_engine(db_url)
    try:
        return set(inspect(engine).get_table_names()) - {"alembic_version"}
    finally:
        engine.dispose()


def _current_revision(db_url: str):
    engine = create_engine(db_url)
    try:
        with engine.connect() as conn:
            row = conn.execute(text("select version_num from alembic_version")).first()
            return row[0] if row else None
    finally:
        engine.dispose()


def _db_urls(tmp_path):
    urls = [f"sqlite:///{tmp_path / 'migrations.db'}"]
    pg_url = os.getenv("E2E_DATABASE_URL")
    if pg_url and pg_url.startswith("postgres"):
        urls.append(pg_url)
    return urls


def test_single_head(monkeypatch, tmp_path):
    cfg = _alembic_config(f"sqlite:///{tmp_path / 'heads.db'}", monkeypatch)
    heads = ScriptDirectory.from_config(cfg).get_heads()
    assert len(heads) == 1


def test_upgrade_creates_model_tables_and_downgrade_removes_them(monkeypatch, tmp_path):
    for db_url in _db_urls(tmp_path):
        cfg = _alembic_config(db_url, monkeypatch)

        command.upgrade(cfg, "head")
        head = ScriptDirectory.from_config(cfg).get_current_head()
        assert _current_revision(db_url) == head
        assert _table_names(db_url) == set(Base.metadata.tables)

        command.downgrade(cfg, "base")
        assert _table_names(db_url) == set()
        assert _current_revision(db_url) is None


def test_upgrade_is_repeatable(monkeypatch, tmp_path):
    db_url = f"sqlite:///{tmp_path / 'repeat.db'}"
    cfg = _alembic_config(db_url, monkeypatch)

    command.upgrade(cfg, "head")
    command.downgrade(cfg, "base")
    command.upgrade(cfg, "head")
    assert _table_names(db_url) == set(Base.metadata.tables)
