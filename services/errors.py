from typing import Any, Dict, List, Optional


class PlanningError(Exception):
    """Base class for errors raised by the evacuation planning core."""


class ValidationError(PlanningError):
    """
    Malformed or out-of-range input.

    `errors` holds one dict per problem with `field` and `message` keys, plus
    `index` when the problem belongs to an item of a batch registration.
    """

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.errors: List[Dict[str, Any]] = errors or []


class NotFoundError(PlanningError):
    """An identifier did not resolve to a zone or vehicle."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
