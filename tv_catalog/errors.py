"""
Error taxonomy shared by the catalog core and the HTTP layer.

Every error carries a stable `kind` so the request layer can render it
without inspecting messages.
"""
from __future__ import annotations


class CatalogError(RuntimeError):
    """Base class for all catalog outcomes that are reported to the caller."""

    kind = "internal_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(CatalogError):
    """Missing or malformed input (empty name, out-of-range rating, ...)."""

    kind = "validation_error"


class NotFoundError(CatalogError):
    """A referenced show, entity or link does not exist."""

    kind = "not_found"


class ConflictError(CatalogError):
    """An explicit uniqueness rule was violated outside the upsert-safe paths."""

    kind = "conflict"


class TransactionFailure(CatalogError):
    """
    A transactional unit failed and was rolled back.

    The message stays generic; the store error is chained as `__cause__`.
    """

    kind = "internal_error"
