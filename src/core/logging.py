"""Logging setup shared by the API and scripts."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO", debug: bool = False) -> None:
    """Configure root logging once; later calls only adjust the level."""
    resolved = logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(resolved)
        return
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    # SQL echo is controlled by settings.debug on the engine.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
