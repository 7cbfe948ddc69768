"""Celltemplate exception hierarchy.

All exceptions can be imported from this package:
    from celltemplate.exceptions import CellTemplateError, ConfigError
"""

from __future__ import annotations

# Base exception
from celltemplate.exceptions.base import CellTemplateError

# Configuration exceptions
from celltemplate.exceptions.config import ConfigError

# Registry exceptions
from celltemplate.exceptions.registry import RegistrationClosedError

__all__ = [
    "CellTemplateError",
    "ConfigError",
    "RegistrationClosedError",
]
