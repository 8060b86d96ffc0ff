"""
Shared logging helpers for sheetdex.

Keeps the "operation started / completed / failed" messages uniform across
the ingestion pipeline and the query path.
"""

from typing import Optional


def safe_log(
    logger: Optional[object],
    level: str,
    message: str,
) -> None:
    """
    Log a message if a logger is available.

    Works with stdlib ``logging.Logger`` and structlog bound loggers
    (``info``/``error``/...), and falls back to a generic ``log`` method.

    Examples:
        >>> safe_log(logger, "info", "Import started")
        >>> safe_log(None, "info", "This will be silently ignored")
    """
    if not logger:
        return

    method = getattr(logger, level, None)
    if callable(method):
        method(message)
        return

    method = getattr(logger, "log", None)
    if callable(method):
        method(message)


def create_error_context(operation: str, error: BaseException, **context) -> str:
    """
    Create a formatted error message with context.

    Examples:
        >>> create_error_context("file import", FileNotFoundError("a.xlsx"), path="/tmp/a.xlsx")
        'file import failed: a.xlsx (path=/tmp/a.xlsx)'
    """
    parts = [f"{operation} failed: {error}"]

    if context:
        ctx_str = ", ".join(f"{k}={v}" for k, v in context.items())
        parts.append(f"({ctx_str})")

    return " ".join(parts)


class LogContext:
    """
    Context manager logging the start and end of an operation.

    Usage:
        with LogContext(logger, "importing file", path=file_path):
            ...

        # INFO: importing file started (path=/data/a.xlsx)
        # INFO: importing file completed (path=/data/a.xlsx)
        # or, on error:
        # ERROR: importing file failed: <error> (path=/data/a.xlsx)

    Exceptions are never swallowed.
    """

    def __init__(
        self,
        logger: Optional[object],
        operation: str,
        log_start: bool = True,
        log_end: bool = True,
        **context
    ):
        self.logger = logger
        self.operation = operation
        self.log_start = log_start
        self.log_end = log_end
        self.context = context

    def _format_message(self, status: str) -> str:
        msg = f"{self.operation} {status}"
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            msg += f" ({ctx_str})"
        return msg

    def __enter__(self):
        if self.log_start:
            safe_log(self.logger, "info", self._format_message("started"))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            error_msg = create_error_context(self.operation, exc_val, **self.context)
            safe_log(self.logger, "error", error_msg)
            return False

        if self.log_end:
            safe_log(self.logger, "info", self._format_message("completed"))
        return False
