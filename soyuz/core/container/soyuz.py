from __future__ import annotations

import types
from pathlib import Path

import pydantic as p
import xdg_base_dirs as xdg
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Object, Provider, Resource, Singleton

import soyuz
from soyuz.model import BaseModel, DeploymentEnvironment

from ..config import Secrets, Settings
from ..di import NotReady
from ..provider import LoggingProvider, TimestampProvider, utcnow
from .auth import AuthContainer
from .autosave import AutosaveContainer
from .storage import StorageContainer


def provide_xdg_state() -> Path:
    stp = xdg.xdg_state_home() / "soyuz"
    stp.mkdir(parents=True, exist_ok=True)
    return stp


# environment variable carrying a BootConfiguration to uvicorn workers
BootVariable = "SOYUZ_BOOT"


class BootConfiguration(BaseModel):
    debug: bool
    env: DeploymentEnvironment
    config_root: p.AnyUrl
    override: tuple[str, ...]


class SoyuzContainer(DeclarativeContainer):
    config: Configuration = Configuration()
    secrets: Configuration = Configuration()

    debug: Provider[bool] = Singleton(bool)
    env: Provider[DeploymentEnvironment] = Singleton(DeploymentEnvironment)
    root: Object[NotReady | Path] = Object(NotReady())
    state_path: Provider[Path] = Singleton(provide_xdg_state)

    logging: Provider[LoggingProvider] = Resource(LoggingProvider, config=config.logging, debug=debug)
    utcnow: Provider[TimestampProvider] = Object(utcnow)

    storage: Provider[StorageContainer] = Container(
        StorageContainer, config=config.storage, secrets=secrets, logging=logging, root=root
    )
    auth: Provider[AuthContainer] = Container(AuthContainer, config=config.web.soyuz.auth, secrets=secrets.auth)
    autosave: Provider[AutosaveContainer] = Container(
        AutosaveContainer, config=config.autosave, secrets=secrets.autosave, state_path=state_path, utcnow=utcnow
    )

    _boot_config: Provider[BootConfiguration | NotReady] = Object(NotReady())

    @staticmethod
    def boot(
        ct: SoyuzContainer,
        /,
        debug: bool,
        env: DeploymentEnvironment,
        config_root: p.FileUrl,
        override: tuple[str, ...] | None = None,
        wiring: tuple[str | types.ModuleType, ...] | None = None,
    ):
        """
        Load settings and secrets for `env` from `config_root`, wire the
        package for injection and start logging. The CLI, uvicorn workers
        and the test session all boot through here.
        """
        if config_root.scheme != "file":
            raise ValueError(f"unsupported scheme for config root: {config_root.scheme}")
        override = override or ()
        ps = Settings(env=env, root=config_root, override=override)
        ct.config.from_pydantic(ps)
        ct.secrets.from_pydantic(Secrets(env=env, root=config_root))

        ct.debug.override(debug)
        ct.env.override(env)
        ct.root.override(Path(soyuz.__file__).resolve().parents[1])

        # wiring a package walks its regular subpackages only; modules under
        # the soyuz.web and soyuz.cli namespace packages come in through `wiring`
        ct.wire(packages=["soyuz"])
        if wiring:
            ct.wire(modules=wiring)

        logger = ct.logging().get_logger()
        for ov in ps.override:
            k, v = ov.split("=", 1)
            logger.info("overriding configuration parameter", extra={"key": k, "value": v})
        logger.debug("configuration finished", extra={"config": str(config_root), "env": env.value})

        ct._boot_config.override(BootConfiguration(debug=debug, env=env, config_root=config_root, override=override))
