"""Development bearer tokens for the assessment service."""

from __future__ import annotations

import datetime

import soyuz.lib.cli as click
from soyuz.auth import JWTManager
from soyuz.core import di
from soyuz.model import UserID


@click.group("token")
def token(): ...


@token.command("issue")
@click.argument("user_id", type=click.KeyType(UserID), required=False)
@click.option("--minutes", "-m", type=click.IntRange(min=1), default=None, help="lifetime, defaults to the configured one")
@di.inject
def issue(user_id: UserID | None, minutes: int | None, manager: JWTManager = di.Provide["auth.jwt_manager"]) -> None:
    """Print a token for USER_ID, or for a new random user when omitted."""
    uid = user_id or UserID()
    expires = datetime.timedelta(minutes=minutes) if minutes else None
    click.echo(f"user:  {uid}", err=True)
    click.echo(manager.create_access_token(uid, expires_delta=expires))
