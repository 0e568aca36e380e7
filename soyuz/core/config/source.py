import functools
import typing as t
from pathlib import Path

import pydantic as p
import yaml
from pydantic_settings import PydanticBaseSettingsSource
from pydantic_settings import SettingsError

import soyuz.lib.util as util
from soyuz.model import DeploymentEnvironment

SKIP_KEYS = frozenset({"env", "root", "override"})


class CurrentState(t.TypedDict, total=False):
    root: t.Required[p.AnyUrl]
    env: t.Required[DeploymentEnvironment]


class SettingsCurrentState(CurrentState, total=False):
    override: t.Required[tuple[str, ...]]


def cascade_paths(root: p.AnyUrl, env: DeploymentEnvironment) -> list[Path]:
    """
    Directories searched for YAML files, least specific first. Local runs
    read the root directory only.
    """
    assert root.scheme == "file" and root.path is not None, "root is not a legible location of YAML files"
    paths = [Path(root.path)]
    if env is not DeploymentEnvironment.Local:
        paths.append(Path(root.path) / "env.d" / env.value)
    return paths


class SettingsSource(PydanticBaseSettingsSource):
    def __call__(self) -> dict[str, t.Any]:
        # we expect init kwargs to have config root and env in them
        data: dict[str, t.Any] = {}

        for field_name, field in self.settings_cls.model_fields.items():
            try:
                field_value, field_key, value_is_complex = self.get_field_value(field, field_name)
                field_value = self.prepare_field_value(field_name, field, field_value, value_is_complex)
            except KeyError:
                continue
            except ValueError as e:
                raise SettingsError(f"error parsing value for field {field_name!r} from source {self!r}") from e
            except Exception as e:
                raise SettingsError(f"error getting value for field {field_name!r} from source {self!r}") from e

            data[field_key] = field_value
        return data

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        return value


class OverrideSettingsSource(SettingsSource):
    """`-o storage.persistent.database.database=/tmp/x.db` style overrides"""

    @functools.cached_property
    def parsed_options(self) -> dict[str, t.Any]:
        current_state = t.cast(SettingsCurrentState, self.current_state)
        od: dict[str, t.Any] = {}
        for o in current_state["override"]:
            k, v = [s.strip() for s in o.split("=", 1)]

            target = od
            path = k.split(".")
            for key in path[:-1]:
                target = target.setdefault(key, {})
            target[path[-1]] = yaml.safe_load(v)
        return od

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        # sources listed later are deep merged beneath this one, so only the
        # overridden leaves need to be returned
        if field_name in SKIP_KEYS or field_name not in self.parsed_options:
            raise KeyError(field_name)
        val = self.parsed_options[field_name]
        return val, field_name, isinstance(val, dict)


class YAMLCascadingSettingsSource(SettingsSource):
    """
    Reads `<field>.yaml` from each cascade directory; later files are deep
    merged over earlier ones.
    """

    filename: t.ClassVar[str] = "{field_name}.yaml"

    @functools.cached_property
    def load_paths(self) -> list[Path]:
        current_state = t.cast(CurrentState, self.current_state)
        return cascade_paths(current_state["root"], current_state["env"])

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        if field_name in SKIP_KEYS:
            raise KeyError(field_name)
        yamls: list[str] = []
        for path in self.load_paths:
            fn = path / self.filename.format(field_name=field_name)
            if fn.exists():
                yamls.append(fn.read_text(encoding="utf8"))
        if not yamls:
            raise KeyError(field_name)
        return yamls, field_name, True

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        if not isinstance(value, list):
            raise ValueError(field_name)
        merged: t.Any = None
        for doc in (yaml.safe_load(s) for s in t.cast(list[str], value)):
            if isinstance(merged, dict) and isinstance(doc, dict):
                merged = util.deep_update(t.cast(dict[t.Any, t.Any], merged), doc)
            else:
                merged = doc
        return merged


class YAMLSecretsSource(SettingsSource):
    """
    Secrets live in a single `secrets.yaml` per cascade directory, keyed by
    section name.
    """

    @functools.cached_property
    def secrets(self) -> dict[str, t.Any]:
        current_state = t.cast(CurrentState, self.current_state)
        merged: dict[str, t.Any] = {}
        for path in cascade_paths(current_state["root"], current_state["env"]):
            fn = path / "secrets.yaml"
            if fn.exists():
                doc = yaml.safe_load(fn.read_text(encoding="utf8")) or {}
                merged = util.deep_update(merged, doc)
        return merged

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        # skip keys are checked first because self.secrets needs root and env
        if field_name in SKIP_KEYS or field_name not in self.secrets:
            raise KeyError(field_name)
        val = self.secrets[field_name]
        return val, field_name, isinstance(val, dict)
