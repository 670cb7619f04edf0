"""Helpers for building REST storages."""

from __future__ import annotations

from typing import Any, Callable, TypeVar

T = TypeVar("T")


def rest_in_peace(factory: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Build a storage with factory, turning any failure into a fatal error."""
    try:
        return factory(*args, **kwargs)
    except Exception as exc:
        raise RuntimeError(
            f"unable to create REST storage for a resource due to {exc}, will die"
        ) from exc