import logging
import os
from pathlib import Path
from typing import Optional


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

# Loggers that flood DEBUG output with browser protocol and HTTP traffic.
NOISY_LOGGERS = ("playwright", "openai", "httpx", "httpcore")


def configure_logging(level: str = "INFO", file_path: Optional[str] = None) -> None:
    """
    Route logs to the console (where the NetID/Duo prompts are read) and, optionally, a run log file.

    Safe to call twice: the CLI calls it once before the config is loaded and again with the
    configured level and log path.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if file_path:
        log_path = Path(file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, (level or "INFO").upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    noisy_level = os.getenv("NOISY_LOG_LEVEL", "WARNING").upper()
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)
