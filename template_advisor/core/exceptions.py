"""
Domain exceptions raised by the advisor use cases.

Structural template problems are never raised; they are reported as data in
a ValidationReport. Only rejections of the request itself live here.
"""

from typing import Any, Optional


class DomainError(Exception):
    """Base class for rejections surfaced to the caller."""

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InputValidationError(DomainError):
    """Missing or malformed request input; raised before any source is touched."""


class AuthorizationError(DomainError):
    """The resource exists but does not belong to the requesting user."""


class NotFoundError(DomainError):
    """Referenced session or template does not exist."""


class TemplateValidationFailed(DomainError):
    """Finalization rejected because the template has critical errors."""

    def __init__(self, message: str, report: Optional[Any] = None) -> None:
        super().__init__(message)
        self.report = report


class GeneratorConfigurationError(DomainError):
    """The template generator cannot run (missing key, bad model)."""


class TemplateGenerationError(DomainError):
    """The generator answered but produced no usable draft."""
