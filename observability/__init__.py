"""Event logging and timing helpers for the intake assistant."""
from .logger import log_event
from .tracing import span

__all__ = ["log_event", "span"]
