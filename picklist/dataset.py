from __future__ import annotations

from collections.abc import Mapping
from typing import Any, List

from picklist.errors import InvalidDatasetError
from picklist.models import Item


def _as_item(obj: Any) -> Any:
    if isinstance(obj, Mapping):
        return dict(obj)
    if hasattr(obj, "label") and not isinstance(obj, str):
        d = {k: v for k, v in vars(obj).items() if not k.startswith("_")} if hasattr(obj, "__dict__") else {}
        d["label"] = getattr(obj, "label")
        return d
    return None


def check_dataset(items: Any) -> List[Item]:
    """
    Validate a preloaded collection and drop entries that can't be shown.

    Only lists and tuples are accepted. Kept entries are truthy and have a
    non-empty label; the caller's objects are copied, never mutated.
    """
    if not isinstance(items, (list, tuple)):
        raise InvalidDatasetError("Invalid dataset: not a list")
    out: List[Item] = []
    for obj in items:
        if not obj:
            continue
        item = _as_item(obj)
        if item is None or not item.get("label"):
            continue
        out.append(item)
    return out
