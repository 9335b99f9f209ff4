import logging
import os
import sys
from datetime import datetime


def setup_logging(main_logger: logging.Logger = None, debug: bool = False, log_path: str = None):
    """Configure console (and optionally file) logging for scripts."""
    level = logging.DEBUG if debug else logging.INFO

    log_formatter = logging.Formatter("[%(threadName)-10.10s:%(name)-20.20s] [%(levelname)-6.6s]  %(message)s")
    console_handler = logging.StreamHandler(stream=sys.stdout)
    console_handler.setFormatter(log_formatter)
    root_logger = logging.getLogger("")
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    if main_logger is not None:
        main_logger.setLevel(level)

    if log_path:
        if not os.path.isdir(log_path):
            raise FileNotFoundError(f"Logging path {log_path} does not exist.")

        date_time = datetime.today().strftime('%Y%m%d_%H%M%S')
        file_handler = logging.FileHandler(os.path.join(log_path, f"{date_time}.log"))
        file_handler.setFormatter(log_formatter)
        root_logger.addHandler(file_handler)
