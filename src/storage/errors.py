"""Errors raised by the on-disk stores."""

from enum import StrEnum


class StoreErrorKind(StrEnum):
    IO = "io"
    NOT_FOUND = "not_found"
    CORRUPT = "corrupt"


class StoreError(Exception):
    def __init__(self, kind: StoreErrorKind, message: str):
        super().__init__(f"{message} [{kind.value}]")
        self.kind = kind
        self.message = message
