"""Exception hierarchy for etlguard.

Validation itself never raises: rule outcomes are always reported as
ValidationResult values. Exceptions exist only at the boundaries, when
input cannot be interpreted at all or when a caller asks for a hard gate.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from etlguard.contracts.results import ValidationResult


class EtlGuardError(Exception):
    """Base class for all etlguard exceptions."""

    pass


class CatalogueError(EtlGuardError, ValueError):
    """Raised when a schema catalogue file cannot be interpreted."""

    pass


class GraphValidationError(EtlGuardError, ValueError):
    """Raised when an invalid graph is submitted for execution.

    Carries the error-level findings that blocked execution so callers can
    surface them without re-running validation.
    """

    def __init__(self, message: str, errors: Sequence[ValidationResult] = ()) -> None:
        super().__init__(message)
        self.errors: tuple[ValidationResult, ...] = tuple(errors)
