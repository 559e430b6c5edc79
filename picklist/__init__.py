from __future__ import annotations

__version__ = "0.3.0"

from picklist.config import PickerOptions  # noqa: E402
from picklist.controller import PickerController  # noqa: E402
from picklist.errors import (  # noqa: E402
    ConfigurationError,
    FetchError,
    InputStreamError,
    InvalidDatasetError,
    PickerError,
)
from picklist.models import Query, SearchPage  # noqa: E402
from picklist.tui import run_picker  # noqa: E402

__all__ = [
    "__version__",
    "ConfigurationError",
    "FetchError",
    "InputStreamError",
    "InvalidDatasetError",
    "PickerController",
    "PickerError",
    "PickerOptions",
    "Query",
    "SearchPage",
    "run_picker",
]
