"""Error taxonomy for the fusion service."""

from __future__ import annotations


class PokefusionError(Exception):
    """Base class for every error raised by this package."""


# -------------------- Startup --------------------

class DataLoadError(PokefusionError):
    """A roster, split-name or custom-entry source is missing or malformed."""


class EmptyRosterError(PokefusionError):
    """The roster holds no usable records."""


# -------------------- Request --------------------

class UnknownCreatureError(PokefusionError):
    def __init__(self, name, role: str | None = None):
        self.name = name
        self.role = role
        label = f"{role} Pokemon" if role else "Pokemon"
        super().__init__(f"Invalid {label}: {name}")


class InvalidParameterError(PokefusionError):
    def __init__(self, message: str, provided: dict | None = None):
        self.message = message
        self.provided = provided or {}
        super().__init__(message)


class FusionComputationError(PokefusionError):
    """Deriving an attribute from two resolved records failed."""

    def __init__(self, head_id: int, body_id: int, cause: BaseException):
        self.head_id = head_id
        self.body_id = body_id
        self.cause = cause
        super().__init__(f"fusion {head_id}.{body_id} failed: {cause}")
