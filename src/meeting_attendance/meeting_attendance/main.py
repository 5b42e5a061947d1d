from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import Container, build_container, build_memory_container
from .dashboard.controller import register as register_dashboard
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .meetings.controller import register as register_meetings
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

_CHECKOUT_DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def _database_dir(settings) -> Path:
    configured = getattr(settings, "DATABASE_DIR", "")
    return Path(configured) if configured else _CHECKOUT_DATABASE_DIR


def _sql_file(directory: Path, name: str) -> Path:
    path = directory / name
    if not path.is_file():
        raise FileNotFoundError(f"{path} not found; point DATABASE_DIR at the directory holding {name}")
    return path


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(*, settings_module: Optional[str] = None, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    grace_minutes = int(getattr(settings, "LATE_GRACE_MINUTES", 0))
    lock_timeout = float(getattr(settings, "CHECKIN_LOCK_TIMEOUT_SECONDS", 5))
    backend = str(getattr(settings, "STORAGE_BACKEND", "mysql")).lower()

    if container is None:
        if backend == "memory":
            container = build_memory_container(grace_minutes=grace_minutes, lock_timeout=lock_timeout)
            logger.info("settings=%s storage=memory", settings_module)
        else:
            db_config = getattr(settings, "DB_CONFIG")
            logger.info(
                "settings=%s storage=mysql db=%s@%s:%s/%s",
                settings_module,
                db_config.get("user"),
                db_config.get("host"),
                db_config.get("port", 3306),
                db_config.get("database"),
            )
            if bool(getattr(settings, "AUTO_INIT_DB", False)):
                apply_schema(db_config, schema_path=_sql_file(_database_dir(settings), "schema.sql"))
                logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
            if bool(getattr(settings, "AUTO_SEED_DB", False)):
                apply_seed_sql(db_config, seed_path=_sql_file(_database_dir(settings), "seed.sql"))
                logger.info("demo seed ready")
            container = build_container(db_config=db_config, grace_minutes=grace_minutes, lock_timeout=lock_timeout)

    app.extensions["meeting_attendance"] = container

    register_users(app, container)
    register_meetings(app, container)
    register_attendance(app, container)
    register_dashboard(app, container)

    return app
