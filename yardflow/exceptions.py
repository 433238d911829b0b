"""
Domain errors raised by the service layer.
The HTTP layer maps NotFoundError → 404 and InvalidOperationError → 400
(see main.py). Both carry a context dict with the ids/values involved.
"""

from typing import Any, Optional


class YardFlowError(Exception):
    """Base class for all recoverable domain errors."""

    def __init__(self, message: str, context: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict:
        return {"detail": self.message, "context": self.context}


class NotFoundError(YardFlowError):
    """A referenced entity id or natural key does not resolve."""

    def __init__(self, entity: str, key: Any, field: str = "id", message: Optional[str] = None):
        super().__init__(
            message or f"{entity} not found with {field}: {key}",
            {"entity": entity, field: key},
        )
        self.entity = entity
        self.key = key


class InvalidOperationError(YardFlowError):
    """A well-formed request violates a domain rule."""

    def __init__(self, message: str, **context):
        super().__init__(message, context)
