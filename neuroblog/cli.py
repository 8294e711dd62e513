"""Command line interface for the NeuroBlog suggestion agent."""

import asyncio
import logging
import sys
from typing import Optional

import click

# Heavy dependencies are imported inside commands so that the CLI module
# stays cheap to import (e.g. for --help).

logger = logging.getLogger(__name__)

# Local operators act with admin rights
OPERATOR = {"user_id": "system", "role": "admin"}


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.option("--database", default=None, help="SQLite database path")
@click.pass_context
def cli(ctx: click.Context, debug: bool, database: Optional[str]) -> None:
    """NeuroBlog AI agent CLI.

    Generates blog post suggestions from trending topics and moderates
    them into published or draft posts.
    """
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["database"] = database
    # Set up logging before any other logging calls
    if debug:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, _settings(ctx).log_level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, force=True)
    logger.debug("Debug mode enabled")


def _settings(ctx: click.Context):
    from neuroblog.models.settings import Settings

    overrides = {"debug": ctx.obj.get("debug", False)}
    if ctx.obj.get("database"):
        overrides["database_path"] = ctx.obj["database"]
    return Settings(**overrides)


def _manager(ctx: click.Context):
    from neuroblog.core.factory import build_lifecycle_manager

    return build_lifecycle_manager(_settings(ctx))


def _operator():
    from neuroblog.models.content import Caller

    return Caller(**OPERATOR)


def _run(ctx: click.Context, coro):
    """Run a lifecycle coroutine, turning pipeline errors into exit codes."""
    from neuroblog.core.errors import LifecycleError, NeuroBlogError

    try:
        return asyncio.run(coro)
    except LifecycleError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(2)
    except NeuroBlogError as e:
        logger.error(f"❌ {e}")
        if ctx.obj.get("debug"):
            raise
        sys.exit(1)


@cli.command()
@click.option(
    "--autonomous", is_flag=True, help="Use the scheduled-cycle limits and prompt"
)
@click.pass_context
def generate(ctx: click.Context, autonomous: bool) -> None:
    """Generate new pending suggestions from trending topics."""
    from neuroblog.models.content import GenerationMode

    manager = _manager(ctx)
    mode = GenerationMode.AUTONOMOUS if autonomous else GenerationMode.ON_DEMAND
    logger.info(f"Starting {mode.value} generation...")

    result = _run(ctx, manager.generate(_operator(), mode))
    if result.skipped_reason:
        click.echo(f"⏭️  Skipped: {result.skipped_reason}")
        return

    click.echo(f"💡 Generated {result.count} suggestions")
    for suggestion in result.suggestions:
        click.echo(f"  {suggestion.id}  {suggestion.title}")


@cli.command()
@click.pass_context
def pending(ctx: click.Context) -> None:
    """List pending suggestions, newest first."""
    manager = _manager(ctx)
    suggestions = _run(ctx, manager.list_pending(_operator()))
    if not suggestions:
        click.echo("No pending suggestions")
        return
    for suggestion in suggestions:
        generated = suggestion.generated_at.strftime("%Y-%m-%d %H:%M")
        click.echo(f"{suggestion.id}  [{generated}]  {suggestion.title}")
        click.echo(f"    {suggestion.source}")


@cli.command()
@click.argument("suggestion_id")
@click.option("--notes", default=None, help="Moderator notes")
@click.option("--draft", is_flag=True, help="Create the post as a draft")
@click.pass_context
def approve(ctx: click.Context, suggestion_id: str, notes: str, draft: bool) -> None:
    """Approve a suggestion and create its post."""
    manager = _manager(ctx)
    result = _run(
        ctx,
        manager.approve(_operator(), suggestion_id, notes=notes, should_publish=not draft),
    )
    click.echo(
        f"✅ Suggestion {result.suggestion.status.value}; "
        f"post {result.post.id} ({result.post.status.value})"
    )


@cli.command()
@click.argument("suggestion_id")
@click.pass_context
def publish(ctx: click.Context, suggestion_id: str) -> None:
    """Publish a pending suggestion directly."""
    manager = _manager(ctx)
    result = _run(ctx, manager.publish(_operator(), suggestion_id))
    click.echo(f"🚀 Published post {result.post.id}")


@cli.command()
@click.argument("suggestion_id")
@click.option("--notes", default=None, help="Reason for rejection")
@click.pass_context
def reject(ctx: click.Context, suggestion_id: str, notes: str) -> None:
    """Reject a suggestion."""
    manager = _manager(ctx)
    _run(ctx, manager.reject(_operator(), suggestion_id, notes=notes))
    click.echo(f"Suggestion {suggestion_id} rejected")


@cli.command()
@click.argument("suggestion_id")
@click.pass_context
def delete(ctx: click.Context, suggestion_id: str) -> None:
    """Delete a suggestion (posts created from it are kept)."""
    manager = _manager(ctx)
    _run(ctx, manager.delete(_operator(), suggestion_id))
    click.echo(f"Suggestion {suggestion_id} deleted")


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Display configuration status (without sensitive values)."""
    settings = _settings(ctx)

    click.echo("\n📋 NeuroBlog Agent Configuration\n")
    click.echo(f"Debug Mode: {settings.debug}")
    click.echo(f"Log Level: {settings.log_level}")
    click.echo(f"Database: {settings.database_path}")
    click.echo(f"Generation Backend: {settings.generation_backend}")

    click.echo("\n🔑 API Keys:")
    keys_status = {
        "NewsAPI": settings.newsapi_api_key,
        "Gemini": settings.gemini_api_key,
        "OpenRouter": settings.openrouter_api_key,
        "Unsplash": settings.unsplash_api_key,
        "Pexels": settings.pexels_api_key,
    }
    for service, key in keys_status.items():
        click.echo(f"  {service}: {'✅ Configured' if key else '❌ Missing'}")

    if not settings.generation_api_key():
        click.echo(
            "\n⚠️  No key for the generation backend - suggestions will use topic fallbacks"
        )


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", default=8000, type=int, help="Bind port")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Run the moderation API."""
    import uvicorn

    from neuroblog.web.app import create_app

    settings = _settings(ctx)
    uvicorn.run(create_app(settings=settings), host=host, port=port)


if __name__ == "__main__":
    cli()
