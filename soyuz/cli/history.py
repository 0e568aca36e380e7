from __future__ import annotations

import asyncio
import datetime

import soyuz.lib.cli as click
from soyuz.assessment import HistoryBrowser, HistoryFilters
from soyuz.model import AssessmentStatus, AssessmentType, UserID

from .autosave import client_for


@click.group("history")
def history(): ...


@history.command("list")
@click.argument("user_id", type=click.KeyType(UserID))
@click.option("--page", "-p", type=click.IntRange(min=1), default=1)
@click.option("--limit", "-l", type=click.IntRange(min=1, max=100), default=10)
@click.option("--type", "-t", "type_", type=click.EnumType(AssessmentType), default=None)
@click.option("--status", "-s", type=click.EnumType(AssessmentStatus), default=None)
@click.option("--from", "date_from", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--to", "date_to", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
def list_(
    user_id: UserID,
    page: int,
    limit: int,
    type_: AssessmentType | None,
    status: AssessmentStatus | None,
    date_from: datetime.datetime | None,
    date_to: datetime.datetime | None,
) -> None:
    """List USER_ID's assessments through the service."""
    filters = HistoryFilters(
        type=type_,
        status=status,
        date_from=date_from.date() if date_from else None,
        date_to=date_to.date() if date_to else None,
    )

    async def _list() -> HistoryBrowser:
        async with client_for(user_id) as client:
            browser = HistoryBrowser(client, limit=limit, filters=filters)
            await browser.load(page)
            return browser

    browser = asyncio.run(_list())
    if browser.error is not None:
        raise click.ClickException(f"could not load history: {browser.error}")

    if not browser.assessments:
        click.echo("No assessments found.")
        return
    for a in browser.assessments:
        completed = a.completed_at.strftime("%Y-%m-%d %H:%M") if a.completed_at else "-"
        click.echo(
            f"{a.assessment_id}  {a.type.value:<12} {a.status.value:<12} "
            f"{a.create_time.strftime('%Y-%m-%d %H:%M')}  {completed}"
        )

    stats = browser.stats()
    total = browser.pagination.total if browser.pagination else len(browser.assessments)
    click.echo(f"page {browser.page}/{max(browser.total_pages, 1)} ({total} total)")
    click.echo(
        f"completed {stats.completed}/{stats.total} ({stats.completion_rate}%), "
        f"average completion time {stats.average_completion_minutes} min"
    )
