import logging
import sys
import time

from pythonjsonlogger.json import JsonFormatter

# libraries that are chatty at INFO
_QUIET = ("uvicorn.access", "httpx", "httpcore", "psycopg.pool")


class UTCJsonFormatter(JsonFormatter):
    converter = time.gmtime


def setup_logging(level: str = "INFO", *, service: str = "momo-auth-api") -> None:
    """One JSON object per line on stdout, tagged with the emitting process."""
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        UTCJsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "ts", "levelname": "level"},
            static_fields={"service": service},
        )
    )
    root.addHandler(handler)

    for name in _QUIET:
        logging.getLogger(name).setLevel(logging.WARNING)
