"""
Core infrastructure package for the loyalty onboarding backend.

Provides:
- Configuration management via pydantic-settings
- The error taxonomy shared by services and the API layer
- The in-memory onboarding store (core.store)
- FastAPI dependency injection utilities (core.dependencies)

This module re-exports configuration and errors for convenient importing:

    from loyalty_backend.core import get_settings, NotFoundError

The store and the dependencies are imported from their own modules
(``loyalty_backend.core.store``, ``loyalty_backend.core.dependencies``)
because they build on the services package, which itself depends on the
configuration and errors exported here.
"""

# =============================================================================
# Re-exports from loyalty_backend.core.config
# =============================================================================
from loyalty_backend.core.config import Settings, get_settings

# =============================================================================
# Re-exports from loyalty_backend.core.errors
# =============================================================================
from loyalty_backend.core.errors import (
    ErrorResponse,
    ConfigurationError,
    IncompleteTemplateError,
    InvalidRangeError,
    NotFoundError,
    DuplicateNameError,
    DuplicateIdError,
    LockedEntryError,
)


__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Error taxonomy (from errors.py)
    'ErrorResponse',
    'ConfigurationError',
    'IncompleteTemplateError',
    'InvalidRangeError',
    'NotFoundError',
    'DuplicateNameError',
    'DuplicateIdError',
    'LockedEntryError',
]
