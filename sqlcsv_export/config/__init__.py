"""Configuration components."""

from .settings import Config, ConnectionSettings

__all__ = ["Config", "ConnectionSettings"]
