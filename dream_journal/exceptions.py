from typing import Optional


class DreamJournalError(Exception):
    """Base class for every error raised by the dream journal."""


class DreamValidationError(DreamJournalError):
    """User input was rejected. The message is shown to the user as-is."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NonsensicalContentError(DreamValidationError):
    """The generator itself flagged the dream as nonsensical."""


class GenerationError(DreamJournalError):
    """The remote generator could not produce a usable analysis."""

    kind = "generation"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class GenerationTimeout(GenerationError):
    kind = "timeout"


class TransportFailure(GenerationError):
    kind = "transport"


class Unauthorized(GenerationError):
    kind = "unauthorized"


class QuotaExceeded(GenerationError):
    kind = "quota"


class ShapeFailure(GenerationError):
    kind = "shape"


class StorageError(DreamJournalError):
    """Persisting or reading a dream record failed."""


class DreamNotFoundError(DreamJournalError):
    def __init__(self, dream_id: int):
        super().__init__(f"Dream {dream_id} not found")
        self.dream_id = dream_id
