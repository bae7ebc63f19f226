"""Main CLI entry point for cachingfs.

Provides command-line access to a cached storage stack.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from cachingfs.cache import CacheAdapter
from cachingfs.compose import from_config
from cachingfs.config import CacheConfig
from cachingfs.errors import KeyNotFoundError, StorageError
from cachingfs.storage.base import lookup_mtime

# Global console for Rich output
console = Console()


def format_timestamp(value: Optional[float]) -> str:
    """Format a POSIX timestamp for display."""
    if value is None:
        return "-"
    return datetime.fromtimestamp(value, tz=timezone.utc).isoformat(timespec="seconds")


def build_config(ctx_obj: dict) -> CacheConfig:
    """Merge configuration sources.

    Priority:
    1. Explicit command-line options
    2. CACHINGFS_* environment variables
    3. Config file (--config or the default location)

    Raises:
        click.ClickException: If the config file or environment is invalid
    """
    try:
        config = CacheConfig.from_env(CacheConfig.load(ctx_obj.get("config_path")))
    except (ValueError, TypeError) as e:
        # JSONDecodeError is a ValueError; unknown config keys are a TypeError
        raise click.ClickException(f"Invalid configuration: {e}")

    if ctx_obj.get("source"):
        config.source = ctx_obj["source"]
    if ctx_obj.get("cache_dir"):
        config.cache_dir = Path(ctx_obj["cache_dir"]).expanduser()
    if ctx_obj.get("state_dir"):
        config.serialization_dir = Path(ctx_obj["state_dir"]).expanduser()
    if ctx_obj.get("ttl") is not None:
        config.ttl = ctx_obj["ttl"]
    return config


def open_cache(ctx) -> CacheAdapter:
    """Build the cache adapter for a command.

    Raises:
        click.ClickException: If no source is configured
    """
    config = build_config(ctx.obj)
    if not config.source:
        raise click.ClickException(
            "No source configured. Use --source or set CACHINGFS_SOURCE."
        )
    try:
        return from_config(config)
    except (StorageError, ValueError) as e:
        raise click.ClickException(str(e))


@click.group()
@click.option(
    "--source",
    "-s",
    help="Authoritative store: local directory or cloud path (default: CACHINGFS_SOURCE)",
)
@click.option(
    "--cache-dir",
    "-c",
    type=click.Path(),
    help="Directory holding cached copies (default: ~/.cachingfs_cache/data)",
)
@click.option(
    "--state-dir",
    type=click.Path(),
    help="Directory holding serialized listings (default: in memory)",
)
@click.option(
    "--ttl", type=click.IntRange(min=0), help="Time to live of cached entries in seconds"
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(),
    help="Path to config file (default: ~/.cachingfs_cache/config.json)",
)
@click.pass_context
def cli(ctx, source, cache_dir, state_dir, ttl, config_path):
    """cachingfs CLI - Read and write through a caching storage layer."""
    ctx.ensure_object(dict)
    ctx.obj["source"] = source
    ctx.obj["cache_dir"] = cache_dir
    ctx.obj["state_dir"] = state_dir
    ctx.obj["ttl"] = ttl
    ctx.obj["config_path"] = Path(config_path) if config_path else None


# ==================== Key Commands ====================


@cli.command("read")
@click.argument("key")
@click.pass_context
def read_cmd(ctx, key):
    """Print the content stored under KEY.

    Example:
        cachingfs -s gs://bucket/data read reports/2024.csv
    """
    adapter = open_cache(ctx)
    try:
        content = adapter.read(key)
    except KeyNotFoundError:
        raise click.ClickException(f"Key not found: {key}")
    except (StorageError, ValueError) as e:
        raise click.ClickException(str(e))

    click.echo(content, nl=False)


@cli.command("write")
@click.argument("key")
@click.argument("content", required=False)
@click.option(
    "--file",
    "-f",
    "file_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Read content from a file instead of the CONTENT argument",
)
@click.pass_context
def write_cmd(ctx, key, content, file_path):
    """Write CONTENT (or --file) under KEY in source and cache."""
    if file_path:
        data = Path(file_path).read_bytes()
    elif content is not None:
        data = content.encode("utf-8")
    else:
        raise click.UsageError("Provide CONTENT or --file")

    adapter = open_cache(ctx)
    try:
        adapter.write(key, data)
    except (StorageError, ValueError) as e:
        raise click.ClickException(str(e))

    console.print(f"[green]✓[/green] Wrote {len(data)} bytes to '{key}'")


@cli.command("delete")
@click.argument("key")
@click.pass_context
def delete_cmd(ctx, key):
    """Delete KEY from source and cache."""
    adapter = open_cache(ctx)
    try:
        adapter.delete(key)
    except KeyNotFoundError:
        raise click.ClickException(f"Key not found: {key}")
    except (StorageError, ValueError) as e:
        raise click.ClickException(str(e))

    console.print(f"[green]✓[/green] Deleted '{key}'")


@cli.command("rename")
@click.argument("key")
@click.argument("new_key")
@click.pass_context
def rename_cmd(ctx, key, new_key):
    """Rename KEY to NEW_KEY in source and cache."""
    adapter = open_cache(ctx)
    try:
        adapter.rename(key, new_key)
    except KeyNotFoundError as e:
        raise click.ClickException(f"Key not found: {e.key}")
    except (StorageError, ValueError) as e:
        raise click.ClickException(str(e))

    console.print(f"[green]✓[/green] Renamed '{key}' to '{new_key}'")


@cli.command("exists")
@click.argument("key")
@click.pass_context
def exists_cmd(ctx, key):
    """Check whether KEY exists in the source. Exits with 1 if missing."""
    adapter = open_cache(ctx)
    try:
        found = adapter.exists(key)
    except (StorageError, ValueError) as e:
        raise click.ClickException(str(e))

    if found:
        console.print(f"[green]✓[/green] '{key}' exists")
    else:
        console.print(f"[red]✗[/red] '{key}' does not exist")
        ctx.exit(1)


@cli.command("status")
@click.argument("key")
@click.pass_context
def status_cmd(ctx, key):
    """Show source and cache timestamps for KEY and whether it needs a reload."""
    adapter = open_cache(ctx)
    try:
        source_time = lookup_mtime(adapter.source, key)
        cache_time = lookup_mtime(adapter.cache, key)
        needs_reload = adapter.needs_reload(key)
    except (StorageError, ValueError) as e:
        raise click.ClickException(str(e))

    table = Table(title=f"Cache status: {key}")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Source modified", format_timestamp(source_time.value))
    table.add_row("Cache modified", format_timestamp(cache_time.value))
    table.add_row("TTL", f"{adapter.ttl}s")
    table.add_row(
        "Needs reload", "[yellow]yes[/yellow]" if needs_reload else "[green]no[/green]"
    )

    console.print(table)


# ==================== Listing Commands ====================


@cli.command("keys")
@click.pass_context
def keys_cmd(ctx):
    """List all keys in the source."""
    adapter = open_cache(ctx)
    try:
        keys = adapter.keys()
    except (StorageError, ValueError) as e:
        raise click.ClickException(str(e))

    if not keys:
        console.print("[yellow]No keys found[/yellow]")
        return

    table = Table(title=f"Keys ({len(keys)})")
    table.add_column("Key", style="cyan")
    for key in sorted(keys):
        table.add_row(key)
    console.print(table)


@cli.command("ls")
@click.argument("directory", default="")
@click.pass_context
def ls_cmd(ctx, directory):
    """List files and directories under DIRECTORY (default: root)."""
    adapter = open_cache(ctx)
    try:
        listing = adapter.list_directory(directory)
    except (StorageError, ValueError) as e:
        raise click.ClickException(str(e))

    if listing is None:
        raise click.ClickException("Source does not support directory listing")

    table = Table(title=f"Listing: /{directory}")
    table.add_column("Type", style="magenta")
    table.add_column("Key", style="cyan")
    for d in listing["dirs"]:
        table.add_row("dir", d)
    for key in listing["keys"]:
        table.add_row("file", key)
    console.print(table)


# ==================== Config Commands ====================


@cli.group()
def config():
    """Show or save configuration."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx):
    """Show the effective configuration."""
    cfg = build_config(ctx.obj)

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("source", cfg.source or "-")
    table.add_row("cache_dir", str(cfg.cache_dir))
    table.add_row(
        "serialization_dir",
        str(cfg.serialization_dir) if cfg.serialization_dir else "(memory)",
    )
    table.add_row("ttl", f"{cfg.ttl}s")
    table.add_row("lock_dir", str(cfg.lock_dir) if cfg.lock_dir else "(none)")
    console.print(table)


@config.command("save")
@click.pass_context
def config_save(ctx):
    """Save the effective configuration to the config file."""
    cfg = build_config(ctx.obj)
    cfg.save(ctx.obj.get("config_path"))
    console.print("[green]✓[/green] Configuration saved")


if __name__ == "__main__":
    cli()
