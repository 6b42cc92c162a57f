"""Exceptions raised while importing records."""

from __future__ import annotations

from catimport.config.errors import ConfigurationError


class ImportJobError(RuntimeError):
    """Base class of failures raised by import runs."""


class ValidationError(ImportJobError):
    """Raised when a record cannot be applied; the current row is discarded."""


class InvalidTypeError(ValidationError):
    """Raised when a chunk references a type code that is not allowed."""

    def __init__(self, *, code: str, scope: str, kind: str) -> None:
        self.code = code
        self.scope = scope
        self.kind = kind
        super().__init__(f'Invalid type "{code}" ({scope}) in {kind} data')


class InvalidListConfigError(ValidationError):
    """Raised when ``<resource>.lists.config`` is not a JSON object."""

    def __init__(self, *, key: str, value: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f'Invalid list config "{value}" for "{key}"')


class InvalidValueError(ValidationError):
    """Raised when a raw field value cannot be converted for its attribute."""


class MissingReferenceWarning(UserWarning):
    """Raised when a referenced code cannot be resolved; the value is skipped."""

    def __init__(self, *, kind: str, code: str, reason: str = "not found") -> None:
        self.kind = kind
        self.code = code
        super().__init__(f'{kind} "{code}" {reason}')


class TypeCreationFailure(ImportJobError):
    """Raised when missing type items cannot be written."""

    def __init__(self, *, scope: str, codes: list[str]) -> None:
        self.scope = scope
        self.codes = codes
        super().__init__(f"Unable to create {scope} types: {', '.join(codes)}")


class ChainConfigurationError(ConfigurationError):
    """Raised when the processor chain cannot be assembled from the configuration."""
