import logging
import sys

LOGGER_NAME = "musux"


def configure_logging(level: int = logging.INFO) -> None:
    """
    Configure root logging for the backend and the CLI player.

    - Logs go to stdout
    - Format: time, level, logger name, message
    - Safe to call twice (uvicorn may have installed handlers already)
    """
    root = logging.getLogger()

    if root.handlers:
        root.setLevel(level)
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
            datefmt="%H:%M:%S",
        )
    )

    root.addHandler(handler)
    root.setLevel(level)

    # httpx logs every request line at INFO; polling every 5s floods the console.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
