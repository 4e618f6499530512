"""
Store protocol: the query-execution boundary the pipeline talks to.

Any object with these methods can back the pipeline. Errors raised by the
store (connectivity, syntax, constraint violations) propagate to the caller
unchanged; nothing in autoload retries them.
"""

from contextlib import AbstractContextManager
from typing import Any, Protocol, Sequence


class Cursor(Protocol):
    """Statement executor handed out inside a transaction."""

    def execute(self, statement: str, params: Sequence[Any] | None = None) -> Any:
        ...


class Store(Protocol):
    """Query execution collaborator."""

    def execute(self, statement: str, params: Sequence[Any] | None = None) -> None:
        """Execute a statement that returns no rows, committing it."""
        ...

    def query_row(self, statement: str, params: Sequence[Any] | None = None) -> tuple | None:
        """Return the first row of a query, or None when there is none."""
        ...

    def query(self, statement: str, params: Sequence[Any] | None = None) -> list[tuple]:
        """Return all rows of a query."""
        ...

    def transaction(self) -> AbstractContextManager[Cursor]:
        """Open a transaction; commit on normal exit, roll back on error."""
        ...
