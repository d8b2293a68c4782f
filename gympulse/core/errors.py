"""Business-rule exceptions raised by the CRUD layer.

All of them derive from ValueError so GraphQL mutations can keep catching
ValueError and turn it into a failure response.
"""
from typing import List, Optional


class ValidationError(ValueError):
    """One or more input fields failed validation."""

    def __init__(self, errors: List[str], message: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(message or "; ".join(self.errors) or "Invalid input")


class NotFoundError(ValueError):
    pass


class ConflictError(ValueError):
    pass
