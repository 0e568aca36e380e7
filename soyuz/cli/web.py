import os
import typing as t

import uvicorn

import soyuz.lib.cli as click
from soyuz.core import BootConfiguration, BootVariable, di
from soyuz.core.config import LoggingSettings, WebSettings


class ServeConfig(t.TypedDict):
    host: str
    port: int


def _get_app_config(app_name: str, web_cf: WebSettings) -> tuple[str, ServeConfig]:
    """Apps are configured under web_cf.{app_name} and built by soyuz.web.{app_name}.main:create_app"""
    cf = getattr(web_cf, app_name, None)
    if cf is None:
        raise click.ClickException(f"unknown app '{app_name}' - not configured in web.yaml")

    spec = f"soyuz.web.{app_name}.main:create_app"
    uvi_cf: ServeConfig = {"host": str(cf.backend.host), "port": cf.backend.port}
    return spec, uvi_cf


@click.group()
def web(): ...


@web.command(name="serve")
@click.argument("app_name", default="soyuz")
@click.option("-w", "--workers", type=click.IntRange(min=1), default=1)
@click.option("--reload", is_flag=True, default=False, help="restart on source changes")
@di.inject
def serve(
    app_name: str,
    workers: int,
    reload: bool,
    boot_cf: BootConfiguration = di.Provide["_boot_config"],
    logging_cf: LoggingSettings = di.Provide["config.logging", di.as_(LoggingSettings)],  # noqa: B008
    web_cf: WebSettings = di.Provide["config.web", di.as_(WebSettings)],  # noqa: B008
):
    """Start the assessment service."""
    spec, uvi_cf = _get_app_config(app_name, web_cf)

    os.environ[BootVariable] = boot_cf.model_dump_json()
    uvicorn.run(spec, factory=True, workers=workers, reload=reload, log_config=logging_cf.model_dump(), **uvi_cf)
