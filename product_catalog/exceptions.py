"""Catalog domain exceptions.

Raised by the validation layer before any storage call. ProductCatalog turns
them into failure outcomes; they never reach the HTTP layer as raw exceptions.
"""

from __future__ import annotations


class FormValidationError(Exception):
    """One or more submitted fields broke a constraint.

    ``errors`` maps each offending field to its messages, all fields at once.
    """

    def __init__(self, errors: dict[str, list[str]]) -> None:
        super().__init__("Invalid product form")
        self.errors = errors


class MissingIdentifierError(Exception):
    """An edit or delete arrived without a usable product id."""

    message = "Product id is required"

    def __init__(self) -> None:
        super().__init__(self.message)
