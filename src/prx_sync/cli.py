"""Command-line entry point for prx-sync."""

from __future__ import annotations

import logging
import sys

import click

from . import status as status_api
from .commands import sync as sync_cmd
from .commands import test_auth as test_auth_cmd
from .commands import watch as watch_cmd
from .core.config import DEFAULT_CONFIG_PATH

# Setup logging early so submodules inherit sane defaults
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


@click.group()
@click.option(
    "--config",
    default=str(DEFAULT_CONFIG_PATH),
    show_default=True,
    help="Path to config file (defaults to data_dir/config/config.yaml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, config: str, verbose: bool) -> None:
    """prx-sync - import PRX stories, images and audio into a local content store."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config


@cli.command("sync")
@click.option("--account-id", type=int, help="PRX account id (default: prx.account_id)")
@click.option("--per-page", type=int, help="Stories per page (default: sync.per_page)")
@click.option("--page", type=int, default=1, show_default=True, help="Page number to import")
@click.option("--dry-run", is_flag=True, help="Log what would change without writing anything")
@click.pass_context
def sync(
    ctx: click.Context,
    account_id: int | None,
    per_page: int | None,
    page: int,
    dry_run: bool,
) -> None:
    """Import one page of PRX stories."""
    if page < 1 or (per_page is not None and per_page < 1):
        click.echo("Error: --page and --per-page must be positive", err=True)
        sys.exit(1)

    try:
        result = sync_cmd.run(
            ctx.obj["config_path"],
            account_id=account_id,
            page=page,
            per_page=per_page,
            dry_run=dry_run,
        )
    except Exception as exc:  # pragma: no cover - click echoes the message
        click.echo(f"❌ Sync command failed: {exc}", err=True)
        sys.exit(1)

    if result.aborted:
        click.echo(f"❌ Sync failed: {result.fatal_error}", err=True)
        sys.exit(1)

    if result.processed_count == 0:
        click.echo("No stories found for this account.")
        return

    counts = f"Success: {result.success_count}, Failed: {result.failed_count}"
    if dry_run:
        click.echo(f"📝 Dry run completed! {counts}")
    else:
        click.echo(f"✅ Import completed! {counts}")

    if result.partial_failure:
        click.echo(f"⚠️  {result.failed_count} stories failed to import:")
        for error in result.errors:
            click.echo(f"   - {error}")


@cli.command("test-auth")
@click.pass_context
def test_auth(ctx: click.Context) -> None:
    """Check PRX credentials against the /authorization endpoint."""
    try:
        data = test_auth_cmd.run(ctx.obj["config_path"])
    except Exception as exc:  # pragma: no cover - click echoes the message
        click.echo(f"❌ Authentication failed: {exc}", err=True)
        sys.exit(1)

    summary = test_auth_cmd.summarize_authorization(data)
    click.echo("✅ Authentication successful")
    click.echo(f"   Authorization id: {summary['id']}")
    if summary['links']:
        click.echo(f"   Links: {', '.join(summary['links'])}")


@cli.command("watch")
@click.option("--interval-hours", type=float, help="Hours between runs (default: sync.interval_hours)")
@click.option("--once", is_flag=True, help="Run a single sync and exit")
@click.pass_context
def watch(ctx: click.Context, interval_hours: float | None, once: bool) -> None:
    """Run the sync periodically (page 1, sync.stories_per_run stories)."""
    try:
        results = watch_cmd.run(ctx.obj["config_path"], interval_hours=interval_hours, once=once)
    except KeyboardInterrupt:  # pragma: no cover - interactive stop
        click.echo("Stopped.")
        return
    except Exception as exc:  # pragma: no cover - click echoes the message
        click.echo(f"❌ Watch command failed: {exc}", err=True)
        sys.exit(1)

    for result in results:
        if result.aborted:
            click.echo(f"❌ Sync failed: {result.fatal_error}", err=True)
        else:
            click.echo(f"✅ Import completed! Success: {result.success_count}, Failed: {result.failed_count}")


@cli.command("status")
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show system status and configuration."""
    info = status_api(ctx.obj["config_path"])
    click.echo(f"📄 Config file: {info['config_path']}")

    if info.get('error'):
        click.echo(f"❌ Error checking status: {info['error']}", err=True)
        return
    if not info.get('valid'):
        click.echo("❌ Configuration validation failed")
        return

    click.echo("✅ Configuration is valid")
    click.echo(f"🌐 Environment: {info['environment']}")
    click.echo(f"👤 Account id: {info['account_id']}")
    click.echo(f"🗄️  Database: {info['database']}")
    click.echo(f"   Content items: {info['content_items']}")
    click.echo(f"   Media assets: {info['media_assets']}")


if __name__ == "__main__":  # pragma: no cover - script entry
    cli()
