"""Errors raised by the model lifecycle.

Store and network errors from the driver are never wrapped; only the
conditions the model layer itself detects are represented here.
"""


class ModelError(Exception):
    """Base class for model lifecycle errors."""


class UnsavedModelError(ModelError):
    """An operation that needs a persisted record was called on a new model.

    Attributes:
        operation: The lifecycle operation that was attempted (fetch, update, remove)
    """

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Can not {operation} unsaved model")


class RecordNotFoundError(ModelError):
    """No stored record matched the requested identifier."""

    def __init__(self, message: str = "Record not found"):
        super().__init__(message)


class RecordNotRemovedError(ModelError):
    """A delete addressed a record the store does not have.

    Attributes:
        id: The identifier the model believed was persisted
    """

    def __init__(self, id):
        self.id = id
        super().__init__(f'Failed to remove record "{id}"')
