from __future__ import annotations

from pathlib import Path

from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect, text

from backend.app.database import Base
from backend.app.migrations import run_database_migrations

BACKEND_DIR = Path(__file__).resolve().parents[1]


def _configure_alembic_script() -> ScriptDirectory:
    config = Config(str(BACKEND_DIR / "alembic.ini"))
    config.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    return ScriptDirectory.from_config(config)


def test_alembic_history_has_a_single_head() -> None:
    assert len(_configure_alembic_script().get_heads()) == 1


def test_run_database_migrations_upgrades_existing_database(tmp_path, monkeypatch) -> None:
    db_path = tmp_path / "legacy.db"
    url = f"sqlite:///{db_path}"

    engine = create_engine(url, connect_args={"check_same_thread": False})
    with engine.begin() as connection:
        connection.execute(text("CREATE TABLE legacy_table (id INTEGER PRIMARY KEY)"))
    engine.dispose()

    monkeypatch.setenv("DATABASE_URL", url)
    run_database_migrations()

    engine = create_engine(url, connect_args={"check_same_thread": False})
    inspector = inspect(engine)

    tables = inspector.get_table_names()
    assert "legacy_table" in tables
    assert "alembic_version" in tables
    assert {"orders", "attachments", "order_sequence", "expenses", "goal_tracker"} <= set(tables)

    with engine.connect() as connection:
        version = connection.scalar(text("SELECT version_num FROM alembic_version"))
        last_value = connection.scalar(text("SELECT last_value FROM order_sequence WHERE id = 1"))
    expected_head = _configure_alembic_script().get_current_head()
    assert version == expected_head
    assert last_value == 0

    engine.dispose()


def test_run_database_migrations_versions_schema_built_with_create_all(tmp_path, monkeypatch) -> None:
    db_path = tmp_path / "current.db"
    url = f"sqlite:///{db_path}"

    engine = create_engine(url, connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    engine.dispose()

    monkeypatch.setenv("DATABASE_URL", url)
    run_database_migrations()

    engine = create_engine(url, connect_args={"check_same_thread": False})
    inspector = inspect(engine)

    assert inspector.has_table("alembic_version")
    assert inspector.has_table("orders")

    with engine.connect() as connection:
        version = connection.scalar(text("SELECT version_num FROM alembic_version"))

    expected_head = _configure_alembic_script().get_current_head()
    assert version == expected_head

    engine.dispose()
