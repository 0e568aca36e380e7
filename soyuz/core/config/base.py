import typing as t

from pydantic_settings import BaseSettings as PydanticBaseSettings

from soyuz.model import BaseModel


# NOTE: BaseModel sits after PydanticBaseSettings in the MRO but ahead of
#       pydantic.BaseModel, so model_dump keeps by_alias=True as its default
class BaseSettings(PydanticBaseSettings, BaseModel):  # pyright: ignore [reportIncompatibleVariableOverride]
    def __init__(self, cf: dict[str, t.Any] | None = None, **kwargs: t.Any):
        # specifically allow initialization with a dict
        if cf is not None:
            kwargs = {**cf, **kwargs}
        super().__init__(**kwargs)


class BaseSecrets(BaseSettings): ...
