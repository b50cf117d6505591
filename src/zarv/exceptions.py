"""Custom exceptions for zarv."""


class NotFoundError(Exception):
    """Raised when a requested resource is not found."""

    pass


class ValidationError(Exception):
    """Raised when validation fails."""

    pass


class StorageError(Exception):
    """Base class for storage layer failures."""

    pass


class StorageUnavailableError(StorageError):
    """Raised when the storage engine is not open or cannot be opened."""

    pass


class QuotaExceededError(StorageError):
    """Raised when a write is rejected because storage capacity is exhausted."""

    pass


class ZodParseError(ValidationError):
    """Raised when a validator definition cannot be parsed.

    Attributes:
        position: Character offset of the offending input
        line: 1-based line of the offending input
        column: 1-based column of the offending input
    """

    def __init__(self, message: str, text: str, position: int) -> None:
        self.position = position
        self.line = text.count("\n", 0, position) + 1
        self.column = position - (text.rfind("\n", 0, position) + 1) + 1
        super().__init__(f"{message} at line {self.line}, column {self.column}")
