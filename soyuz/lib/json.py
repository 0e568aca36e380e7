from __future__ import annotations

import datetime
import enum
import json as pyjson
import pathlib
import typing as t

import pydantic as p

JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]

loads = pyjson.loads


def encode_temporal(obj: datetime.date | datetime.time) -> str:
    return obj.isoformat()


def encode_timedelta(obj: datetime.timedelta) -> float:
    return obj.total_seconds()


def encode_enum(obj: enum.Enum) -> JSONValue:
    return obj.value


def encode_collection(obj: set[t.Any] | frozenset[t.Any] | tuple[t.Any, ...]) -> list[t.Any]:
    return list(obj)


Encoders: dict[type, t.Callable[[t.Any], JSONValue]] = {
    datetime.date: encode_temporal,  # also covers datetime.datetime
    datetime.time: encode_temporal,
    datetime.timedelta: encode_timedelta,
    enum.Enum: encode_enum,
    pathlib.PurePath: str,
    set: encode_collection,
    frozenset: encode_collection,
}


class JSONEncoder(pyjson.JSONEncoder):
    """Knows the types that show up in column values, payloads and log extras."""

    def default(self, o: t.Any) -> JSONValue:
        if isinstance(o, p.BaseModel):
            return o.model_dump(mode="json")
        for tp, encode in Encoders.items():
            if isinstance(o, tp):
                return encode(o)
        return super().default(o)


def dumps(obj: t.Any, **kwargs: t.Any) -> str:
    kwargs.setdefault("cls", JSONEncoder)
    return pyjson.dumps(obj, **kwargs)


def canonical(obj: t.Any) -> str:
    """Stable serialization used to detect unchanged payloads."""
    return dumps(obj, sort_keys=True, separators=(",", ":"))
