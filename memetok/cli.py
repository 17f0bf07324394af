"""
Command line driver: refresh the store and query it.
"""
from __future__ import annotations

import json
import logging
import sys

import click

from memetok.errors import FetchError
from memetok.models import Category
from memetok.pipeline import MemePipeline
from memetok.settings import load_settings
from memetok.status import build_status


def _post_to_dict(post) -> dict:
    return post.model_dump()


def _topic_line(topic) -> str:
    sub = topic.subcategory_id or "-"
    return f"{topic.id}  {topic.category.value:<13} {sub:<15} {topic.trending_score:>9.1f}  {topic.title}"


@click.group()
@click.option("--no-ner", is_flag=True, help="Skip the spaCy entity rule during classification.")
@click.pass_context
def cli(ctx: click.Context, no_ner: bool):
    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.obj = {"settings": settings, "use_ner": not no_ner}


def _pipeline(ctx: click.Context) -> MemePipeline:
    if "pipeline" not in ctx.obj:
        ctx.obj["pipeline"] = MemePipeline.from_settings(ctx.obj["settings"], use_ner=ctx.obj["use_ner"])
    return ctx.obj["pipeline"]


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the status payload as JSON.")
@click.pass_context
def fetch(ctx: click.Context, as_json: bool):
    """Aggregate all curated sources, classify and store the results."""
    pipeline = _pipeline(ctx)
    result = pipeline.refresh()
    if as_json:
        click.echo(json.dumps(build_status(pipeline, ctx.obj["settings"]), ensure_ascii=False, indent=2))
        return
    for group, posts in result.report.groups.items():
        click.echo(f"{group}: {len(posts)}")
    for failure in result.report.failures():
        label = f"{failure.source} ({failure.query})" if failure.query else failure.source
        click.echo(f"failed: {label}: {failure.error}", err=True)
    click.echo(f"stored {len(result.classified)} posts")


@cli.command()
@click.argument("name")
@click.option("--limit", default=None, type=int, help="Maximum posts to return.")
@click.pass_context
def source(ctx: click.Context, name: str, limit: int | None):
    """Rank the current posts of a single source without storing them."""
    settings = ctx.obj["settings"]
    try:
        posts = _pipeline(ctx).trending_for_source(name, limit or settings.per_source_limit)
    except FetchError as exc:
        click.echo(f"Failed to fetch memes from {name}: {exc}", err=True)
        sys.exit(1)
    for post in posts:
        click.echo(json.dumps(_post_to_dict(post), ensure_ascii=False))


@cli.command()
@click.option("--category", type=click.Choice([c.value for c in Category]), default=None)
@click.option("--subcategory", default=None)
@click.option("--active/--inactive", "is_active", default=None)
@click.pass_context
def topics(ctx: click.Context, category: str | None, subcategory: str | None, is_active: bool | None):
    """List stored topics, highest trending score first."""
    selected = Category(category) if category else None
    for topic in _pipeline(ctx).topics(category=selected, subcategory_id=subcategory, is_active=is_active):
        click.echo(_topic_line(topic))


@cli.command()
@click.argument("topic_id")
@click.pass_context
def posts(ctx: click.Context, topic_id: str):
    """List stored posts for a topic, newest first."""
    for post in _pipeline(ctx).posts_for_topic(topic_id):
        click.echo(json.dumps(_post_to_dict(post), ensure_ascii=False))


@cli.command()
@click.pass_context
def status(ctx: click.Context):
    """Print configuration and stored topic counts. Use ``fetch --json`` for refresh results."""
    payload = build_status(_pipeline(ctx), ctx.obj["settings"], include_refresh=False)
    click.echo(json.dumps(payload, ensure_ascii=False, indent=2))


if __name__ == "__main__":  # pragma: no cover
    cli()
