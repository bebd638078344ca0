import logging
import sys
from pathlib import Path
from typing import Optional


def init_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """
    Configure root logging for the service.

    Logs go to stdout and, when `log_file` is given, to that file as well.
    Existing root handlers are replaced so repeated calls stay idempotent.
    """
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(numeric_level)

    formatter = logging.Formatter(
        fmt="[{asctime}][{levelname}][{name}] {message}",
        datefmt="%Y-%m-%d %H:%M:%S",
        style="{",
    )

    stream_handler = logging.StreamHandler(stream=sys.stdout)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    logging.getLogger(__name__).info("Logging configured level=%s", logging.getLevelName(numeric_level))
