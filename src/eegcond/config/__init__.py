"""Configuration system for eegcond."""

from .loaders import ConfigLoader
from .models import Settings

__all__ = [
    "ConfigLoader",
    "Settings",
]
