"""Exception types raised by the budget tree engine.

Input and lookup problems derive from ``ValueError`` so the API's generic
``ValueError -> 400`` handler reports them without extra wiring.  Storage
failures are a separate branch because they map to 503, not 400.
"""


class BudgetTreeError(ValueError):
    """Base class for recoverable input errors in the budget tree engine."""


class MalformedTreeError(BudgetTreeError):
    """Raised when a raw tree is cyclic, too deep, or has a non-object node."""

    def __init__(self, detail: str, path: tuple[str, ...] = ()):
        self.detail = detail
        self.path = path
        where = f" at /{'/'.join(path)}" if path else ""
        super().__init__(f"{detail}{where}")


class DatasetLoadError(BudgetTreeError):
    """Raised when a dataset cannot be parsed or sanitized.

    The session that raised it keeps its previously installed dataset.
    """

    def __init__(self, source: str, detail: str):
        self.source = source
        self.detail = detail
        super().__init__(f"Could not load dataset from {source}: {detail}")


class InvalidQueryError(BudgetTreeError):
    """Raised for an empty or whitespace-only search query."""


class NotesUnavailableError(RuntimeError):
    """Raised when the notes backend cannot persist a change."""
