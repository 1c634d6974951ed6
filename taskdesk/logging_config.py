"""Process-wide logging setup."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from .config import settings

_configured = False


def configure_logging(level: str | None = None) -> None:
    """Install a rich console handler on the root logger once."""
    global _configured
    if _configured:
        return
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    # SQL echo is controlled by TASKDESK_ECHO_SQL, not the root level.
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    _configured = True
