from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    lvl = getattr(logging, (level or "INFO").upper(), logging.INFO)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
    root.setLevel(lvl)

    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(max(lvl, logging.WARNING))
