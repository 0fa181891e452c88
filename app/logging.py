"""Process-wide logging setup."""

from __future__ import annotations

import logging

from app.config import settings

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once.

    Repeated calls only adjust the level so test runs and reloads do not
    stack handlers.
    """
    resolved = (level or settings.log_level or "INFO").upper()
    root = logging.getLogger()
    if not any(getattr(handler, "_admin_tables", False) for handler in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler._admin_tables = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(resolved)
    # SQL echo stays off unless explicitly enabled.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
