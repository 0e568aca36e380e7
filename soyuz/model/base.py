import datetime
import typing as t

import pydantic as p


class BaseModel(p.BaseModel):
    """
    Dumps by alias unless asked not to. Aliases are the names the service
    and the backups use on the wire, e.g. the DISC factor letters.
    """

    def model_dump(self, *, by_alias: bool | None = True, **kwargs: t.Any) -> dict[str, t.Any]:
        return super().model_dump(by_alias=by_alias, **kwargs)

    def model_dump_json(self, *, by_alias: bool | None = True, **kwargs: t.Any) -> str:
        return super().model_dump_json(by_alias=by_alias, **kwargs)


class WithTimestamps(BaseModel):
    create_time: datetime.datetime
    update_time: datetime.datetime
