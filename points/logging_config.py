"""Logging configuration helpers."""

import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

# base58 wallet addresses and transaction signatures
_BASE58_RE = re.compile(r"\b([1-9A-HJ-NP-Za-km-z]{4})[1-9A-HJ-NP-Za-km-z]{24,84}([1-9A-HJ-NP-Za-km-z]{4})\b")


def shorten(value: str) -> str:
    return _BASE58_RE.sub(r"\1…\2", value)


class AddressShorteningFilter(logging.Filter):
    """Shortens wallet addresses and signatures in log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = shorten(record.getMessage())
        record.args = ()
        return True


def setup_logging(level: Union[int, str] = logging.INFO, log_dir: Optional[str] = None) -> None:
    """Configure console and optional rotating file handlers."""

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    address_filter = AddressShorteningFilter()

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    stream_handler.addFilter(address_filter)
    root.addHandler(stream_handler)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path / "points.log",
            maxBytes=5_000_000,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.addFilter(address_filter)
        root.addHandler(file_handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
