from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from core.config import BACKEND_DIR


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

# Per-logger levels as (development, production).
_LOGGER_LEVELS = {
    # Per-demand backtracking traces from the placement heuristic.
    "solver": (logging.DEBUG, logging.INFO),
    "services": (logging.DEBUG, logging.INFO),
    "sqlalchemy.engine": (logging.WARNING, logging.WARNING),
    "uvicorn": (logging.DEBUG, logging.INFO),
    "uvicorn.error": (logging.DEBUG, logging.INFO),
    "uvicorn.access": (logging.INFO, logging.INFO),
}


def setup_logging(*, environment: str) -> None:
    """Configure logging for the timetable service.

    Development and test runs log everything to the console, including the
    solver's per-demand traces. Production logs INFO and above to the console
    and to a rotating ``logs/app.log`` next to the backend package, so
    generation runs (scope, entries written, conflict counts) can be audited.

    Calling it again is a no-op once the root logger has handlers.
    """

    root = logging.getLogger()
    if root.handlers:
        return

    production = (environment or "development").lower().strip() == "production"
    level = logging.INFO if production else logging.DEBUG
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    handlers: list[logging.Handler] = [console]

    if production:
        logs_dir = Path(BACKEND_DIR) / "logs"
        logs_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            logs_dir / "app.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers)

    for name, (dev_level, prod_level) in _LOGGER_LEVELS.items():
        logging.getLogger(name).setLevel(prod_level if production else dev_level)
