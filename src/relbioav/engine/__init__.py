"""Pipeline execution engine."""

from .context import RunContext

__all__ = ["RunContext"]
