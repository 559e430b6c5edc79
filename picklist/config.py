from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from picklist.errors import ConfigurationError

ENV_PICKLIST_SIZE = "PICKLIST_SIZE"
ENV_PICKLIST_DEBOUNCE_MS = "PICKLIST_DEBOUNCE_MS"
ENV_PICKLIST_CACHE = "PICKLIST_CACHE"
ENV_PICKLIST_FUZZY_ON_SEARCH = "PICKLIST_FUZZY_ON_SEARCH"

DEFAULT_SIZE = 10
DEFAULT_DEBOUNCE_MS = 300

_FALSY = ("0", "false", "no", "off")
_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class PickerOptions:
    size: int = DEFAULT_SIZE
    fuzzy_on_search: bool = False
    debounce_delay: int = DEFAULT_DEBOUNCE_MS  # milliseconds
    cache: bool = True
    debug: bool = False

    def validate(self) -> "PickerOptions":
        if not isinstance(self.size, int) or self.size < 1:
            raise ConfigurationError(f'Option "size" must be a positive integer, got {self.size!r}')
        if not isinstance(self.debounce_delay, int) or self.debounce_delay < 0:
            raise ConfigurationError(
                f'Option "debounce_delay" must be a non-negative integer, got {self.debounce_delay!r}'
            )
        return self

    def with_overrides(self, **changes: object) -> "PickerOptions":
        # None means "not given" (argparse defaults).
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "PickerOptions":
        env = os.environ if env is None else env
        opts = cls(
            size=_env_int(env, ENV_PICKLIST_SIZE, DEFAULT_SIZE),
            debounce_delay=_env_int(env, ENV_PICKLIST_DEBOUNCE_MS, DEFAULT_DEBOUNCE_MS),
            cache=_env_bool(env, ENV_PICKLIST_CACHE, True),
            fuzzy_on_search=_env_bool(env, ENV_PICKLIST_FUZZY_ON_SEARCH, False),
        )
        return opts.validate()


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"${name} must be an integer, got {raw!r}") from None


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = (env.get(name) or "").strip().lower()
    if not raw:
        return default
    if raw in _FALSY:
        return False
    if raw in _TRUTHY:
        return True
    raise ConfigurationError(f"${name} must be a boolean (1/0, true/false), got {raw!r}")
