"""
Engine error taxonomy.

Every failure an operation can raise derives from ``EngineError`` so the
HTTP layer can map the whole family in one place. ``IntegrityWarning`` is
not an exception: it is reported alongside a successful result.
"""

from dataclasses import dataclass


class EngineError(Exception):
    """Base class for all engine failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(EngineError):
    """Malformed or missing input. Raised before any mutation."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field


class NotFoundError(EngineError):
    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(EngineError):
    """The request is well-formed but clashes with current state."""


class ConstraintViolation(EngineError):
    """The store rejected a write the engine should have caught first."""


@dataclass(frozen=True)
class IntegrityWarning:
    player_id: int
    contestant_id: int
    pick_number: int | None
    message: str

    def as_dict(self) -> dict:
        return {
            "player_id": self.player_id,
            "contestant_id": self.contestant_id,
            "pick_number": self.pick_number,
            "message": self.message,
        }


def require_id(field: str, value) -> int:
    """Validate a primary-key style argument: a positive int, never a bool."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field, "must be an integer")
    if value <= 0:
        raise ValidationError(field, "must be a positive integer")
    return value


def require_int(field: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field, "must be an integer")
    return value
