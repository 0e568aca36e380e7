"""Main entry point for the Soyuz assessment service."""

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import soyuz
from soyuz.core import BootConfiguration, BootVariable, di, SoyuzContainer
from soyuz.core.config.web import SoyuzWebSettings
from soyuz.model import DeploymentEnvironment

from .route import router

WebModules = (
    "soyuz.web.soyuz.main",
    "soyuz.web.soyuz.route.assessment",
    "soyuz.web.soyuz.route.export",
    "soyuz.web.soyuz.route.history",
    "soyuz.auth.middleware",
)


@di.inject
def _create_app(
    config: SoyuzWebSettings = di.Provide["config.web.soyuz", di.as_(SoyuzWebSettings)],
    env: DeploymentEnvironment = di.Provide["env"],
) -> FastAPI:
    app = FastAPI(
        title="Soyuz",
        description="Assessment persistence service",
        version=soyuz.__version__,
    )

    origins = list(config.cors_origins)
    if env is DeploymentEnvironment.Local:
        origins.append(f"http://localhost:{config.backend.port}")
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(router)
    return app


def create_app() -> FastAPI:
    """
    Factory for uvicorn. `soyuz web serve` passes its boot configuration
    through the environment since uvicorn workers start in fresh processes;
    without it the app relies on a container that is already wired, as in
    tests.
    """
    boot_vars = os.getenv(BootVariable)
    if not boot_vars:
        return _create_app()

    boot_cf = BootConfiguration.model_validate_json(boot_vars)
    ct = SoyuzContainer()
    SoyuzContainer.boot(ct, **dict(boot_cf), wiring=WebModules)
    return _create_app(config=SoyuzWebSettings(**ct.config.web.soyuz()), env=boot_cf.env)
