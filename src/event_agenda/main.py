from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv

from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .settings import get_settings_module

logger = logging.getLogger("event_agenda")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def load_settings():
    load_dotenv(override=False)
    return importlib.import_module(get_settings_module())


def bootstrap() -> Container:
    """Load settings, configure logging, optionally create tables, wire services."""
    settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    db_config = dict(getattr(settings, "DB_CONFIG"))
    if getattr(settings, "DEBUG", False):
        logger.debug(
            "settings=%s db=%s@%s:%s/%s",
            get_settings_module(),
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

    if getattr(settings, "AUTO_INIT_DB", False):
        apply_schema(db_config)
        logger.debug("schema ready (tables=%d)", len(list_tables(db_config)))

    return build_container(db_config=db_config)
