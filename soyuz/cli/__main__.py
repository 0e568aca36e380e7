from __future__ import annotations

import importlib
import sys
import threading
import types
import typing as t
from pathlib import Path

import pydantic as p

import soyuz
import soyuz.lib.cli as click
from soyuz.autosave import PersistenceError
from soyuz.core import SoyuzContainer
from soyuz.model import DeploymentEnvironment

_configured = False
_SoyuzRoot = Path(soyuz.__file__).resolve().parents[1]

_wiring: list[types.ModuleType] = []


# command name -> module under soyuz.cli; `token` would shadow the stdlib module
Commands = {
    "autosave": "autosave",
    "history": "history",
    "schema": "schema",
    "token": "tokens",
    "web": "web",
}


class SoyuzMultiCommand(click.Group):
    def list_commands(self, ctx: click.Context) -> t.List[str]:
        return list(Commands)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Group | None:
        global _wiring
        if cmd_name not in self.list_commands(ctx):
            return None
        mod = importlib.import_module(f"soyuz.cli.{Commands[cmd_name]}")
        _wiring.append(mod)
        return getattr(mod, cmd_name)


@click.group(cls=SoyuzMultiCommand)
@click.option("-E", "--env", default=DeploymentEnvironment.Local, type=click.EnumType(DeploymentEnvironment))
@click.option("-c", "--config-root", default=_SoyuzRoot / "config", type=click.ConfigRootType())
@click.option(
    "-o",
    "--override",
    multiple=True,
    help="configuration path parameter-value pairs to override config with, e.g., -o autosave.debounce=1.5",
)
@click.option("-D", "--debug", is_flag=True, default=False)
@click.pass_obj
def main(
    ct: SoyuzContainer,
    env: DeploymentEnvironment,
    config_root: p.FileUrl,
    override: tuple[str, ...],
    debug: bool,
):
    global _configured, _wiring
    SoyuzContainer.boot(
        ct,
        debug=debug,
        env=env,
        config_root=config_root,
        override=override,
        wiring=tuple(_wiring),
    )
    _configured = True


def _report(ex: Exception, container: SoyuzContainer) -> int:
    click.echo(click.style("ERROR ", fg="red"), nl=False, file=sys.stderr)
    if isinstance(ex, PersistenceError):
        # the message already carries the HTTP status when there was a response
        kind = "retryable" if ex.retryable else "rejected"
        click.echo(f"assessment service ({kind}): {ex}", file=sys.stderr)
    else:
        click.echo(str(ex), file=sys.stderr)

    if container.debug() or (not _configured and "-D" in sys.argv[1:]):
        import traceback

        traceback.print_exc()
    if isinstance(ex, click.ClickException):
        return ex.exit_code
    return 2 if isinstance(ex, PersistenceError) else -1


def execute_command(*_args: str) -> None:
    threading.current_thread().name = "soyuz-0"
    args = list(_args or sys.argv)
    args[0] = Path(args[0]).name
    container = SoyuzContainer()

    try:
        with main.make_context(args[0], args=args[1:]) as ctx:
            ctx.obj = container
            sys.exit(t.cast(int, main.invoke(ctx)))
    except (EOFError, KeyboardInterrupt, click.Abort):
        click.echo("Aborted!", file=sys.stderr)
        sys.exit(1)
    except click.exceptions.Exit as ex:
        sys.exit(ex.exit_code)
    except Exception as ex:
        sys.exit(_report(ex, container))
    finally:
        container.shutdown_resources()


if __name__ == "__main__":
    execute_command(*sys.argv)
