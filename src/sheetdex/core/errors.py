from typing import Optional


class SheetdexError(Exception):
    """Base class for every error raised by sheetdex."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} (path={self.path})"
        return self.message


class InputError(SheetdexError):
    """The import root is missing or is not a directory."""


class FileAccessError(SheetdexError):
    """A source file could not be stat'ed or read."""


class FormatError(SheetdexError):
    """A workbook could not be opened or parsed."""


class StorageError(SheetdexError):
    """A store operation failed; any open transaction was rolled back."""


class ValidationError(SheetdexError):
    """A search or export request was rejected before touching the store."""


class EmptyResultError(ValidationError):
    """An export query matched no rows."""
