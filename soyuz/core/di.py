"""
Injection markers used across soyuz.

Functions declare their dependencies as defaults, e.g.

    def get(key, session: Session = di.Provide["storage.persistent.session"]): ...

and are wired by `SoyuzContainer.boot`. `Manage` is `Provide` for resources
that must be closed when the call returns, such as request-scoped sessions.
"""

from __future__ import annotations

__all__ = [
    "Manage",
    "NotReady",
    "Provide",
    "as_",
    "inject",
]

import functools
import typing as t

import dependency_injector.wiring as wiring
from dependency_injector.wiring import ClassGetItemMeta, Closing, Provide, TypeModifier

P = t.ParamSpec("P")
R = t.TypeVar("R")
T = t.TypeVar("T")


def inject(fn: t.Callable[P, R]) -> t.Callable[P, R]:
    injections, closing = wiring._fetch_reference_injections(fn)  # pyright: ignore [reportPrivateUsage]
    patched = wiring._get_patched(fn, injections, closing)  # pyright: ignore [reportPrivateUsage]

    # FastAPI resolves the annotations of route handlers against __globals__,
    # which must stay the handler module's
    if fn.__module__.startswith("soyuz.web") and hasattr(fn, "__globals__"):
        return functools.wraps(fn, updated=("__globals__",))(patched)
    return patched


class Manage(object, metaclass=ClassGetItemMeta):
    """Provide a resource and close it once the injected call returns."""

    def __new__(cls, provider: t.Any):
        return Closing[Provide[provider]]

    @classmethod
    def __class_getitem__(cls, item: t.Any):
        return cls(item)


def as_(type_: type[T]) -> TypeModifier:
    """Convert a configuration value on injection, e.g. `di.Provide["config.x", di.as_(str)]`."""
    return TypeModifier(type_)


class NotReady(object):
    """Placeholder value of providers that are filled in during boot."""

    _instance: t.ClassVar[NotReady | None] = None

    def __new__(cls) -> NotReady:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "<NotReady>"
