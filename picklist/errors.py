from __future__ import annotations


class PickerError(Exception):
    """
    Base class for errors that end a picker session.

    Every subclass is terminal: the session is torn down and the error is raised
    from `pick()` / `run_picker()`. Nothing is retried.
    """


class ConfigurationError(PickerError):
    """Invalid construction-time options (raised before any input is read)."""


class InvalidDatasetError(PickerError):
    """The dataset collaborator returned something that is not an item list."""


class InputStreamError(PickerError):
    """The terminal input source reported an error."""


class FetchError(PickerError):
    """
    The search collaborator raised while fetching a page.

    The original exception is kept as `__cause__`.
    """

    def __init__(self, query: str, page: int, message: str) -> None:
        super().__init__(f"Search failed for {query!r} (page {page}): {message}")
        self.query = query
        self.page = page
