from pathlib import Path

from sqlalchemy import create_engine, inspect

import burnlink.config as config_module
from alembic import command
from alembic.config import Config

ALEMBIC_INI = Path(__file__).resolve().parents[1] / "alembic.ini"


def test_alembic_upgrade_head_on_fresh_sqlite_db(tmp_path, monkeypatch):
    database_url = f"sqlite:///{tmp_path / 'fresh.db'}"
    monkeypatch.setattr(config_module.settings, "database_url", database_url)

    command.upgrade(Config(str(ALEMBIC_INI)), "head")

    engine = create_engine(database_url, connect_args={"check_same_thread": False})
    inspector = inspect(engine)
    tables = set(inspector.get_table_names())

    assert {"secrets", "audit_events"}.issubset(tables)
    assert "ix_secrets_expires_at" in {ix["name"] for ix in inspector.get_indexes("secrets")}


def test_alembic_downgrade_base(tmp_path, monkeypatch):
    database_url = f"sqlite:///{tmp_path / 'roundtrip.db'}"
    monkeypatch.setattr(config_module.settings, "database_url", database_url)
    alembic_cfg = Config(str(ALEMBIC_INI))

    command.upgrade(alembic_cfg, "head")
    command.downgrade(alembic_cfg, "base")

    engine = create_engine(database_url, connect_args={"check_same_thread": False})
    assert not {"secrets", "audit_events"} & set(inspect(engine).get_table_names())
