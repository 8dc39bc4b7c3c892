"""
Error taxonomy for the agenda core.

- ValidationError: invalid input to a pure function (raised at the call site)
- FetchError: the backing store could not serve a read
- CommitError: the backing store rejected or failed a write

I/O errors are recoverable at the UI/API boundary. Nothing here should
crash the process; callers log them and keep last-known-good state.
"""


class AgendaError(Exception):
    """Base class for all agenda errors."""

    pass


class ValidationError(AgendaError, ValueError):
    """Raised when an interval, window or query range is malformed."""

    pass


class StoreError(AgendaError):
    """Base for errors coming back from the persistence collaborator."""

    def __init__(self, message: str, *, status_code: int | None = None, table: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.table = table


class FetchError(StoreError):
    """A read from the backing store failed. Not retried here."""

    pass


class CommitError(StoreError):
    """A write (insert/update/delete) to the backing store failed."""

    pass
