from __future__ import annotations

import typing as t

import pydantic as p
import pydantic_core.core_schema as core_schema
import shortuuid

KeyLength = 22


class ShortUUIDKey(str):
    """
    A shortuuid behind a four character type prefix, e.g. `user$<22 chars>`.

    `ShortUUIDKey("user$...")` validates a complete key, `ShortUUIDKey()`
    generates a new one, and `ShortUUIDKey(key=...)` prefixes a bare key
    read back from storage without validating it.
    """

    prefix: t.ClassVar[str]
    separator: t.ClassVar[str]

    def __init_subclass__(cls, prefix: str, separator: str = "$"):
        super().__init_subclass__()
        if len(prefix) != 4:
            raise ValueError(f"{cls.__name__}: prefix must have length 4")
        if len(separator) != 1:
            raise ValueError(f"{cls.__name__}: separator must have length 1")
        cls.prefix = prefix
        cls.separator = separator

    def __new__(cls, s: str | None = None, /, key: str | None = None) -> t.Self:
        if key is None and s is not None:
            cls._check(s)
            return super().__new__(cls, s)
        return super().__new__(cls, f"{cls.prefix}{cls.separator}{key or shortuuid.uuid()}")

    @classmethod
    def _check(cls, s: str) -> None:
        head = cls.prefix + cls.separator
        if not s.startswith(head):
            raise ValueError(f"invalid {cls.__name__}: key must begin with {head}")
        key = s[len(head) :]
        if len(key) != KeyLength:
            raise ValueError(f"invalid {cls.__name__}: key must have length {KeyLength}")
        alphabet = shortuuid.get_alphabet()
        if any(c not in alphabet for c in key):
            raise ValueError(f"invalid {cls.__name__}: key must comprise only {alphabet}")

    @classmethod
    def __get_pydantic_core_schema__(cls, src: t.Any, handler: p.GetCoreSchemaHandler) -> core_schema.CoreSchema:
        # strings are validated through the constructor, instances pass as they are
        from_str = core_schema.no_info_after_validator_function(cls, core_schema.str_schema())
        return core_schema.json_or_python_schema(
            json_schema=from_str,
            python_schema=core_schema.union_schema([core_schema.is_instance_schema(cls), from_str]),
            serialization=core_schema.plain_serializer_function_ser_schema(str.__str__),
        )

    @classmethod
    def __get_pydantic_json_schema__(cls, src: t.Any, handler: p.GetJsonSchemaHandler) -> p.json_schema.JsonSchemaValue:
        return {"type": "string", "pattern": f"^{cls.prefix}\\{cls.separator}[{shortuuid.get_alphabet()}]{{{KeyLength}}}$"}

    @property
    def key(self) -> str:
        return self[len(self.prefix) + len(self.separator) :]

    def __hash__(self) -> int:
        return str.__hash__(self)

    def __str__(self) -> str:
        return str.__str__(self)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.key}>"


# fmt: off
class UserID(ShortUUIDKey, prefix="user"): ...
class AssessmentID(ShortUUIDKey, prefix="asmt"): ...
