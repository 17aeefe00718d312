from __future__ import annotations

import logging
import os

logger = logging.getLogger("saviora.server")


def configure_logging() -> None:
    """Configure root logging once; SAVIORA_LOG_LEVEL overrides the INFO default."""
    if logger.handlers:
        return

    level_name = os.getenv("SAVIORA_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Upstream request lines carry the API key header at debug level
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
