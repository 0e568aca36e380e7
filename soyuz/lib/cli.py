from __future__ import annotations

import enum
import pathlib
import typing as t

import click
import pydantic as p
from click import *  # noqa: F401, F403 # pyright: ignore [reportWildcardImportFromLibrary]

from soyuz.model import ShortUUIDKey

# Thin wrapper around Click: commands import this module as `click` and get
# the parameter types below alongside everything Click exports.

E = t.TypeVar("E", bound=enum.Enum)
K = t.TypeVar("K", bound=ShortUUIDKey)


class EnumType(click.ParamType, t.Generic[E]):
    """Enum member given by its value, e.g. `--type soft_skills`."""

    def __init__(self, enum: type[E]):
        self.enum = enum
        self.name = enum.__name__

    def get_metavar(self, param: click.Parameter, *args: t.Any) -> str:
        return "[" + "|".join(str(e.value) for e in self.enum) + "]"

    def convert(self, value: t.Any, param: click.Parameter | None, ctx: click.Context | None) -> E:
        if isinstance(value, self.enum):
            return value
        try:
            return self.enum(value)
        except ValueError:
            choices = ", ".join(str(e.value) for e in self.enum)
            self.fail(f"{value!r} is not one of {choices}", param, ctx)


class KeyType(click.ParamType, t.Generic[K]):
    """A prefixed key such as a UserID, validated on the command line."""

    def __init__(self, key_type: type[K]):
        self.key_type = key_type
        self.name = key_type.__name__

    def convert(self, value: t.Any, param: click.Parameter | None, ctx: click.Context | None) -> K:
        if isinstance(value, self.key_type):
            return value
        try:
            return self.key_type(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


class ConfigRootType(click.ParamType):
    """
    Directory holding the YAML configuration, given as a path or a file://
    URL; converted to a file URL for the settings loader.
    """

    name = "DIRECTORY OR URL"

    def convert(
        self, value: str | pathlib.Path | p.FileUrl, param: click.Parameter | None, ctx: click.Context | None
    ) -> p.FileUrl:
        if isinstance(value, p.FileUrl):
            return value
        if isinstance(value, str) and "://" in value:
            url = p.AnyUrl(value)
            if url.scheme != "file" or url.path is None:
                self.fail(f"{value}: only file:// URLs are supported", param, ctx)
            path = pathlib.Path(url.path)
        else:
            path = pathlib.Path(value)

        if not path.is_dir():
            self.fail(f"{path}: not a directory", param, ctx)
        return p.FileUrl(f"file://{path.absolute()}")
