"""Runtime settings, read from the environment (and a local ``.env`` if present)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .bins import DEFAULT_BUCKETS
from .utils.exceptions import ConfigError

DEFAULT_API_URL = 'http://localhost:8000/crime-profiler/api'
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    buckets: int = DEFAULT_BUCKETS
    boundaries_path: Optional[str] = None


def _read_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f'{name} must be a number, got {raw!r}')
    if value <= 0:
        raise ConfigError(f'{name} must be positive, got {raw!r}')
    return value


def load_settings(dotenv: bool = True) -> Settings:
    """
    Build Settings from CRIME_PROFILER_* variables

    Args:
        dotenv (bool): Load a .env file from the working directory first

    Raises:
        ConfigError: A numeric setting could not be parsed
    """
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))
    api_url = os.getenv('CRIME_PROFILER_API_URL', '').strip() or DEFAULT_API_URL
    return Settings(
        api_url=api_url.rstrip('/'),
        timeout=_read_number('CRIME_PROFILER_TIMEOUT', DEFAULT_TIMEOUT, float),
        buckets=_read_number('CRIME_PROFILER_BUCKETS', DEFAULT_BUCKETS, int),
        boundaries_path=os.getenv('CRIME_PROFILER_BOUNDARIES') or None,
    )


__all__ = ["Settings", "load_settings"]
