"""Configuration package for the intake assistant."""
from .settings import Settings, settings

__all__ = ["Settings", "settings"]
