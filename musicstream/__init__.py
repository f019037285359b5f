"""
MusicStream - headless music player core.

Playback queue and transport for the MusicStream REST backend.
"""

__version__ = "0.1.0"

from .app import MusicStream
from .config import Config, ConfigError, load_config

__all__ = [
    "__version__",
    "MusicStream",
    "Config",
    "load_config",
    "ConfigError",
]
