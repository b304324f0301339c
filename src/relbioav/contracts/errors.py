"""Error definitions for the relbioav package."""

from __future__ import annotations
from typing import Dict, Optional


class RelBioavError(Exception):
    """Base exception for all relbioav package errors."""
    
    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(RelBioavError):
    """Configuration-related errors."""
    pass


class ValidationError(ConfigError):
    """Input validation errors."""
    pass


class InvalidArgumentError(ValidationError):
    """Selection outside an enumerated set of accepted values."""
    pass


class DataShapeError(RelBioavError):
    """Analysis dataset is missing columns, levels or rows."""
    pass


class FittingError(RelBioavError):
    """Model fitting failed (non-convergence, singular fit, no residual df)."""
    pass


class ReportingError(RelBioavError):
    """Table or plot rendering errors."""
    pass
