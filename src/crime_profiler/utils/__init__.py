from .formatting import format_number, escape_html
from .palette import BASE_PALETTE, NO_DATA_COLOR, get_palette
from .exceptions import CrimeProfilerException, ApiRequestError, ConfigError
from .logger_config import setup_logger

__all__ = [
    "format_number",
    "escape_html",
    "BASE_PALETTE",
    "NO_DATA_COLOR",
    "get_palette",
    "CrimeProfilerException",
    "ApiRequestError",
    "ConfigError",
    "setup_logger",
]
