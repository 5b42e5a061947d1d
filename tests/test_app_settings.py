import sys
import types
from pathlib import Path

import pytest

from src.meeting_attendance.meeting_attendance import main
from src.meeting_attendance.meeting_attendance.main import create_app


def _settings_module(monkeypatch, name, **values):
    module = types.ModuleType(name)
    defaults = dict(
        SECRET_KEY="test",
        STORAGE_BACKEND="mysql",
        DB_CONFIG={"host": "localhost", "user": "root", "password": "", "database": "unused"},
        AUTO_INIT_DB=True,
        AUTO_SEED_DB=False,
        LOG_LEVEL="WARNING",
    )
    defaults.update(values)
    for key, value in defaults.items():
        setattr(module, key, value)
    monkeypatch.setitem(sys.modules, name, module)
    return name


def test_database_dir_from_settings(tmp_path):
    assert main._database_dir(types.SimpleNamespace(DATABASE_DIR=str(tmp_path))) == tmp_path


def test_database_dir_defaults_to_checkout():
    directory = main._database_dir(types.SimpleNamespace(DATABASE_DIR=""))
    assert (directory / "schema.sql").is_file()
    assert (directory / "seed.sql").is_file()


def test_missing_schema_fails_before_touching_the_database(monkeypatch, tmp_path):
    def fail(*args, **kwargs):
        raise AssertionError("database must not be touched")

    monkeypatch.setattr(main, "apply_schema", fail)
    monkeypatch.setattr(main, "build_container", fail)
    name = _settings_module(monkeypatch, "settings_missing_sql", DATABASE_DIR=str(tmp_path / "nowhere"))

    with pytest.raises(FileNotFoundError, match="DATABASE_DIR"):
        create_app(settings_module=name)


def test_configured_directory_is_used_for_schema(monkeypatch, tmp_path):
    (tmp_path / "schema.sql").write_text("SELECT 1;", encoding="utf-8")
    applied = []

    monkeypatch.setattr(main, "apply_schema", lambda db_config, *, schema_path: applied.append(Path(schema_path)))
    monkeypatch.setattr(main, "list_tables", lambda db_config: [])
    monkeypatch.setattr(main, "build_container", lambda **kwargs: main.build_memory_container())
    name = _settings_module(monkeypatch, "settings_custom_sql", DATABASE_DIR=str(tmp_path))

    create_app(settings_module=name)

    assert applied == [tmp_path / "schema.sql"]
