"""Run-scoped overrides for numeric engine constants.

Overrides come from two places, checked in order: ``ABATEMENT_<NAME>``
environment variables, then the ``[engine.constants]`` (or ``[constants]``)
table of the run configuration that is currently installed with
:func:`run_config_overrides`. Lookups happen when a constant is read, so a
run configuration installed by the command line applies to that run only.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Callable, TypeVar

LOGGER = logging.getLogger(__name__)

ENV_PREFIX = "ABATEMENT_"
_SECTION_PATHS: tuple[tuple[str, ...], ...] = (("engine", "constants"), ("constants",))

T = TypeVar("T")

_installed: dict[str, Any] = {}


def constants_section(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return the constants table of a parsed run config keyed by upper-case name."""

    for path in _SECTION_PATHS:
        cursor: Any = data
        for key in path:
            cursor = cursor.get(key) if isinstance(cursor, Mapping) else None
        if isinstance(cursor, Mapping):
            return {str(key).upper(): value for key, value in cursor.items()}
    return {}


@contextmanager
def run_config_overrides(data: Mapping[str, Any]) -> Iterator[dict[str, Any]]:
    """Install the constants table of ``data`` for the duration of the block."""

    global _installed
    previous = _installed
    _installed = constants_section(data)
    if _installed:
        LOGGER.info("Using constant overrides: %s", ", ".join(sorted(_installed)))
    try:
        yield dict(_installed)
    finally:
        _installed = previous


def get_constant(name: str, default: T, cast_func: Callable[[Any], T] | None = None) -> T:
    """Return ``name`` from the environment or the installed run config, else ``default``.

    An override that ``cast_func`` (the type of ``default`` when omitted)
    cannot convert is logged and ignored.
    """

    key = name.upper()
    env_key = f"{ENV_PREFIX}{key}"
    if env_key in os.environ:
        raw, source = os.environ[env_key], env_key
    elif key in _installed:
        raw, source = _installed[key], "run config"
    else:
        return default

    converter = cast_func if cast_func is not None else type(default)
    try:
        return converter(raw)
    except (TypeError, ValueError) as exc:
        LOGGER.warning("Invalid override for %s=%r from %s: %s", name, raw, source, exc)
        return default


__all__ = ["ENV_PREFIX", "constants_section", "get_constant", "run_config_overrides"]
