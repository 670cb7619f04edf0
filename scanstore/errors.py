"""Errors raised by the storage layer."""

from __future__ import annotations

from typing import ClassVar

OPERATION_NOT_SUPPORTED = "operation not supported"


class StorageError(Exception):
    """Base class for storage failures tied to a key."""

    code: ClassVar[int] = 0
    reason: ClassVar[str] = "storage error"

    def __init__(self, key: str = "", resource_version: int = 0, message: str = "") -> None:
        self.key = key
        self.resource_version = resource_version
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"StorageError: {self.reason}, Code: {self.code}, Key: {self.key}, "
            f"ResourceVersion: {self.resource_version}, AdditionalErrorMsg: {self.message}"
        )

    def _fields(self) -> tuple:
        return (self.code, self.key, self.resource_version, self.message)

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self._fields() == other._fields()  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), self._fields()))


class KeyNotFoundError(StorageError):
    """No object is stored under the key."""

    code = 1
    reason = "key not found"

    def __init__(self, key: str, resource_version: int = 0) -> None:
        super().__init__(key, resource_version)


class InvalidObjectError(StorageError):
    """The operation cannot be applied to the object at the key."""

    code = 4
    reason = "invalid object"

    def __init__(self, key: str, message: str = "") -> None:
        super().__init__(key, 0, message)


class PreconditionError(InvalidObjectError):
    """A precondition on the stored object did not hold."""


class InternalError(StorageError):
    """An unexpected internal state of the storage."""

    def __init__(self, reason: str) -> None:
        self.internal_reason = reason
        super().__init__("", 0, reason)

    def __str__(self) -> str:
        return self.internal_reason


class InvalidKeyError(StorageError, ValueError):
    """A key that does not start with a slash."""

    def __init__(self, key: str = "") -> None:
        super().__init__(key, 0, "Provided key is invalid")

    def __str__(self) -> str:
        return "Provided key is invalid"