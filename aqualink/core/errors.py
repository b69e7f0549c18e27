class StorageError(Exception):
    """Base class for errors raised by the storage layer."""


class DuplicateError(StorageError):
    """A unique field (email, username, requestId) is already taken."""

    def __init__(self, entity: str, field: str, value=None):
        self.entity = entity
        self.field = field
        self.value = value
        if value is None:
            message = f"{entity} with this {field} already exists"
        else:
            message = f"{entity} with {field} '{value}' already exists"
        super().__init__(message)


class InvalidTransitionError(Exception):
    """A water request update breaks the status lifecycle."""
