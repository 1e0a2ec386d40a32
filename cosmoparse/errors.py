from __future__ import annotations

from typing import Any, List, Optional


class CosmoParseError(Exception):
    """Base exception for cosmoparse."""
    pass


class ConfigurationError(CosmoParseError):
    """Raised when the API key is missing or malformed."""
    pass


class ValidationError(CosmoParseError):
    """Raised when an example does not conform to the schema."""

    def __init__(self, message: str, errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.errors = errors or []


class TransportError(CosmoParseError):
    """Raised on any network or service level failure."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
