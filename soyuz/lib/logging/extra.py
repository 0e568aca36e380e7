import json
import logging
import string
import sys
import textwrap
import typing as t

import pygments
from pygments.formatters import Terminal256Formatter
from pygments.lexers.data import JsonLexer  # pyright: ignore [reportMissingTypeStubs]
from pygments.style import Style
from pygments.token import Keyword, Name, Number, Punctuation, String

from soyuz.lib.json import JSONEncoder, JSONValue

# attributes every LogRecord carries, plus those added by formatters and colorlog
RecordKeys = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {
    "asctime",
    "color_message",
    "log_color",
    "message",
    "reset",
    "taskName",
}


class LogStyle(Style):
    """Keys and ids stand out; values stay close to the log line's own colors."""

    styles = {
        Name.Tag: "#87afd7",
        String: "#afd787",
        String.Double: "#afd787",
        Number: "#ffaf5f",
        Keyword.Constant: "#d787d7",
        Punctuation: "#6c6c6c",
    }


def _encode_extra(obj: t.Any) -> JSONValue:
    try:
        return JSONEncoder().default(obj)
    except TypeError:
        return repr(obj)


class ExtraFormatter(logging.Formatter):
    """
    Wraps a base formatter (colorlog's, in the shipped logging config) and
    appends whatever was passed as `extra=` to the log call, as JSON. On a
    terminal the JSON is highlighted with pygments.
    """

    def __init__(
        self,
        base: type[logging.Formatter],
        format: str | None,
        datefmt: str | None = None,
        indent: bool = True,
        pyg_style: t.Type[Style] = LogStyle,
        style: t.Literal["%", "{", "$"] = "%",
        validate: bool = True,
        *,
        defaults: t.Any = None,
        **kwargs: t.Any,
    ):
        self.base = base(format, datefmt=datefmt, style=style, validate=validate, defaults=defaults, **kwargs)
        self.pyg_style = pyg_style
        self.indent = indent
        self.no_color = bool(kwargs.get("no_color", False))

    @staticmethod
    def extras(record: logging.LogRecord) -> dict[str, t.Any]:
        return {k: v for k, v in record.__dict__.items() if k not in RecordKeys}

    def format(self, record: logging.LogRecord) -> str:
        if "color_message" in record.__dict__:
            record.msg = record.__dict__.pop("color_message")

        msg = record.getMessage()
        if "\n" in msg:
            # continuation lines line up under the first one
            formatted = self.base.format(record)
            prefix = formatted[: formatted.find(msg)]
            indent = " " * sum(1 for c in prefix if c in string.printable)
            first, rest = msg.split("\n", 1)
            record.msg = record.message = f"{first}\n{textwrap.indent(rest, indent)}"
            record.args = None
        message = self.base.format(record)

        extra = self.extras(record)
        if not extra:
            return message
        return f"{message} {self.render(extra)}"

    def render(self, extra: dict[str, t.Any]) -> str:
        js = json.dumps(extra, sort_keys=True, indent=(4 if self.indent else None), default=_encode_extra)
        if self.no_color or not sys.stderr.isatty():
            return js
        hl = pygments.highlight  # pyright: ignore [reportUnknownMemberType, reportUnknownVariableType]
        return hl(js, JsonLexer(), Terminal256Formatter(style=self.pyg_style), None).strip()

    def __getattr__(self, name: str) -> t.Any:
        return getattr(self.base, name)
