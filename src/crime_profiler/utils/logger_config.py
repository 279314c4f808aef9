import logging
import os
from datetime import datetime

LOG_DIR = 'logs'


def setup_logger(name, log_dir=LOG_DIR):
    """
    Custom logging format and handlers for the crime profiler

    Parameters
    name (str) : Name of the logger
    log_dir (str) : Folder the daily log file is written to

    Returns:
    logging.Logger : Configured Logger Instance
    """

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Modules are imported repeatedly under streamlit reruns
    if logger.handlers:
        return logger

    os.makedirs(log_dir, exist_ok=True)

    # Configs for how logs will appear in logs/
    file_format = logging.Formatter(
        '%(levelname)s : %(name)s : %(funcName)s : %(lineno)d : %(message)s'
    )

    log_file = os.path.join(log_dir, f'crime_profiler_{datetime.now().strftime("%m%d%Y")}')
    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(file_format)

    # Console only gets the useful bits
    console_format = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s'
    )
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(console_format)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)
    logger.propagate = False

    return logger
