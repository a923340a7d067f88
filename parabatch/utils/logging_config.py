import logging
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_FORMAT = "[%(levelname)s] %(name)s - %(message)s"
THREADED_FORMAT = "[%(levelname)s] %(name)s (%(threadName)s) - %(message)s"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    show_threads: bool = False,
) -> None:
    """
    Configure basic logging for parabatch scripts and the benchmark CLI.

    The library never configures logging on import; applications call this
    (or their own setup) once at startup.

    Parameters
    ----------
    level:
        Logging level name (e.g., "INFO", "DEBUG").
    log_file:
        Optional path to log output. When not provided, logs go to stderr.
    show_threads:
        Include the thread name in each record, which tells
        ``parabatch_worker_N`` chunk logs apart from the calling thread.
    """

    logging_level = getattr(logging, level.upper(), logging.INFO)
    log_kwargs: Dict[str, Any] = {
        "level": logging_level,
        "format": THREADED_FORMAT if show_threads else DEFAULT_FORMAT,
    }

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        log_kwargs["filename"] = log_file

    logging.basicConfig(**log_kwargs)
