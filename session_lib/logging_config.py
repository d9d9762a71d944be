from __future__ import annotations
import logging
from typing import Optional


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure root logging for the session server.

    Replaces any root handlers with a single stream handler at `level`
    (a level name such as 'INFO'; unknown names fall back to WARNING) and
    returns a module logger for the caller.
    """
    default_level = logging.WARNING
    if level:
        resolved = logging.getLevelName(level.upper())
        if isinstance(resolved, int):
            default_level = resolved

    # Reconfigure root handlers to use the selected level and format
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    logging.basicConfig(level=default_level, format='%(asctime)s %(levelname)s [%(name)s]: %(message)s')
    logging.log(100, f'[session]: Log level set to: {logging.getLevelName(default_level)}')
    logger = logging.getLogger(__name__)

    # Keep known noisy libraries quiet by default
    logging.getLogger('redis').setLevel(logging.WARNING)
    logging.getLogger('aiomcache').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)

    return logger
