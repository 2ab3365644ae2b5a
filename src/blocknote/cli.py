"""CLI entry point for blocknote."""

import asyncio
import inspect
from pathlib import Path
from typing import Any, Callable, Optional

import click
from rich.console import Console
from rich.text import Text

from blocknote.config import DEFAULT_CONFIG_PATH, ConfigManager
from blocknote.models.block import Block, BlockColumn
from blocknote.models.config import Config
from blocknote.models.property import CheckboxValue, PropertyType
from blocknote.models.sync_state import SyncState, SyncStatus
from blocknote.services.connectivity import ConnectivityMonitor
from blocknote.services.tree_navigator import TreeNavigator
from blocknote.session import OutlineSession
from blocknote.utils.logging import LOG_LEVELS, bind_command, configure_logging, get_logger


logger = get_logger(__name__)
console = Console()

STATUS_STYLES = {
    SyncStatus.IDLE: "dim",
    SyncStatus.SYNCING: "yellow",
    SyncStatus.SYNCED: "green",
    SyncStatus.ERROR: "bold red",
}


def load_config(config_path: Optional[Path]) -> Config:
    """
    Load configuration (default: ~/.config/blocknote/config.yaml).

    Raises:
        click.ClickException: If config has invalid permissions or fails validation
    """
    try:
        return ConfigManager.load_from_path(config_path or DEFAULT_CONFIG_PATH).config
    except (PermissionError, ValueError) as e:
        raise click.ClickException(str(e))


def resolve_block_id(session: OutlineSession, block_ref: str) -> str:
    """
    Resolve a full id or a unique id prefix to a block id.

    Raises:
        click.ClickException: If no block or several blocks match
    """
    if session.store.get(block_ref) is not None:
        return block_ref

    matches = [b.id for b in session.store.blocks if b.id.startswith(block_ref)]
    if not matches:
        raise click.ClickException(f"No block matches '{block_ref}'")
    if len(matches) > 1:
        raise click.ClickException(f"'{block_ref}' is ambiguous ({len(matches)} blocks match)")
    return matches[0]


def run_in_session(ctx: click.Context, action: Callable[[OutlineSession], Any]) -> tuple[Any, SyncState]:
    """
    Open a session, apply ``action`` to it (awaiting it if it returns a
    coroutine), then flush sync and close.

    Returns:
        (action result, final sync state)
    """
    config = load_config(ctx.obj.get("config_path"))
    connectivity = ConnectivityMonitor(online=not ctx.obj.get("offline", False))

    async def runner() -> tuple[Any, SyncState]:
        session = OutlineSession.from_config(config, connectivity=connectivity)
        await session.open()
        try:
            result = action(session)
            if inspect.isawaitable(result):
                result = await result
        finally:
            state = await session.close()
        return result, state

    return asyncio.run(runner())


def format_block_line(block: Block, navigator: TreeNavigator) -> Text:
    """Render one outline row: bullet, short id, title and badges."""
    if navigator.has_children(block.id):
        bullet = "▸" if block.is_collapsed else "▾"
    else:
        bullet = "•"

    line = Text("  " * block.indent)
    line.append(f"{bullet} ")

    checkbox = block.find_property(PropertyType.CHECKBOX)
    if checkbox is not None:
        line.append("[x] " if checkbox.value.checked else "[ ] ")

    line.append(block.display_name, style="bold" if block.is_pinned else "")
    line.append(f"  {block.id[:8]}", style="dim")

    if block.is_pinned:
        line.append("  pinned", style="magenta")
    if block.column != BlockColumn.INBOX:
        line.append(f"  @{block.column.value}", style="cyan")
    return line


def print_sync_state(state: SyncState) -> None:
    status = Text(state.status.value, style=STATUS_STYLES[state.status])
    line = Text("sync: ").append(status)
    if not state.is_online:
        line.append("  (offline, saved locally)", style="dim")
    if state.last_error:
        line.append(f"  {state.last_error}", style="red")
    console.print(line)


@click.group()
@click.version_option(version="0.1.0", prog_name="blocknote")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    help="Path to configuration file (default: ~/.config/blocknote/config.yaml)",
)
@click.option("--offline", is_flag=True, help="Treat the network as unavailable (local cache only)")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Log level (default: BLOCKNOTE_LOG_LEVEL or INFO)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], offline: bool, log_level: Optional[str]):
    """blocknote: an outline of typed blocks, synced to a remote store."""
    configure_logging(level=log_level)
    bind_command(ctx.invoked_subcommand, offline=offline)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["offline"] = offline


@cli.command()
@click.option("--all", "show_all", is_flag=True, help="Include blocks hidden by collapsed parents")
@click.pass_context
def show(ctx: click.Context, show_all: bool):
    """Print the outline."""
    def action(session: OutlineSession) -> None:
        navigator = session.navigator
        blocks = session.store.blocks if show_all else navigator.visible_blocks()
        if not blocks:
            console.print("(empty outline)", style="dim")
        for block in blocks:
            console.print(format_block_line(block, navigator))

    _, state = run_in_session(ctx, action)
    print_sync_state(state)


@cli.command()
@click.argument("content", required=False, default="")
@click.option("--name", default="", help="Block title")
@click.option("--after", "after_ref", help="Insert after this block (id or prefix)")
@click.pass_context
def add(ctx: click.Context, content: str, name: str, after_ref: Optional[str]):
    """
    Add a block (at the top, or after another block).

    Examples:
        blocknote add "Buy milk"
        blocknote add "Call back" --after 3f2a
    """
    def action(session: OutlineSession) -> str:
        after_id = resolve_block_id(session, after_ref) if after_ref else None
        return session.store.add_block(after_id, name=name, content=content)

    block_id, state = run_in_session(ctx, action)
    logger.info("block_added", block_id=block_id)
    click.echo(block_id)
    print_sync_state(state)


@cli.command()
@click.argument("block_ref")
@click.argument("content")
@click.pass_context
def edit(ctx: click.Context, block_ref: str, content: str):
    """Replace a block's content."""
    _, state = run_in_session(
        ctx, lambda s: s.store.update_content(resolve_block_id(s, block_ref), content)
    )
    print_sync_state(state)


@cli.command()
@click.argument("block_ref")
@click.argument("name")
@click.pass_context
def rename(ctx: click.Context, block_ref: str, name: str):
    """Set a block's name."""
    _, state = run_in_session(
        ctx, lambda s: s.store.update_name(resolve_block_id(s, block_ref), name)
    )
    print_sync_state(state)


@cli.command()
@click.argument("block_ref")
@click.pass_context
def delete(ctx: click.Context, block_ref: str):
    """Delete a block (the last remaining block cannot be deleted)."""
    def action(session: OutlineSession) -> None:
        block_id = resolve_block_id(session, block_ref)
        if len(session.store) <= 1:
            raise click.ClickException("Cannot delete the last block")
        session.store.delete_block(block_id)

    _, state = run_in_session(ctx, action)
    print_sync_state(state)


@cli.command()
@click.argument("block_ref")
@click.pass_context
def indent(ctx: click.Context, block_ref: str):
    """Nest a block under its predecessor (one level at a time)."""
    _, state = run_in_session(
        ctx, lambda s: s.navigator.indent(resolve_block_id(s, block_ref))
    )
    print_sync_state(state)


@cli.command()
@click.argument("block_ref")
@click.pass_context
def outdent(ctx: click.Context, block_ref: str):
    """Move a block one level up."""
    _, state = run_in_session(
        ctx, lambda s: s.navigator.outdent(resolve_block_id(s, block_ref))
    )
    print_sync_state(state)


@cli.command()
@click.argument("block_ref")
@click.pass_context
def collapse(ctx: click.Context, block_ref: str):
    """Toggle whether a block's children are hidden."""
    _, state = run_in_session(
        ctx, lambda s: s.navigator.toggle_collapse(resolve_block_id(s, block_ref))
    )
    print_sync_state(state)


@cli.command()
@click.argument("block_ref")
@click.pass_context
def pin(ctx: click.Context, block_ref: str):
    """Toggle a block's pinned flag."""
    _, state = run_in_session(
        ctx, lambda s: s.store.toggle_pin(resolve_block_id(s, block_ref))
    )
    print_sync_state(state)


@cli.command()
@click.argument("block_ref")
@click.argument("column", type=click.Choice([c.value for c in BlockColumn]))
@click.pass_context
def move(ctx: click.Context, block_ref: str, column: str):
    """Move a block to another column."""
    _, state = run_in_session(
        ctx, lambda s: s.store.move_to_column(resolve_block_id(s, block_ref), BlockColumn(column))
    )
    print_sync_state(state)


@cli.command()
@click.argument("block_ref")
@click.pass_context
def check(ctx: click.Context, block_ref: str):
    """Toggle a block's checkbox (adding one if missing)."""
    def action(session: OutlineSession) -> None:
        block_id = resolve_block_id(session, block_ref)
        checkbox = session.store.get(block_id).find_property(PropertyType.CHECKBOX)
        if checkbox is None:
            session.store.add_property(block_id, PropertyType.CHECKBOX, initial_value=CheckboxValue(checked=True))
        else:
            session.store.update_property(
                block_id, checkbox.id, CheckboxValue(checked=not checkbox.value.checked)
            )

    _, state = run_in_session(ctx, action)
    print_sync_state(state)


@cli.command()
@click.pass_context
def sync(ctx: click.Context):
    """Push the whole outline to the remote now, even when marked offline."""
    result, _ = run_in_session(ctx, lambda s: s.sync_now())
    click.echo(f"upserted: {result.upserted}")
    print_sync_state(result)


@cli.command()
@click.pass_context
def status(ctx: click.Context):
    """Show block count and sync state."""
    count, state = run_in_session(ctx, lambda s: len(s.store))
    click.echo(f"blocks: {count}")
    click.echo(f"remote connected: {'yes' if state.is_remote_connected else 'no'}")
    if state.last_synced_at:
        click.echo(f"last synced: {state.last_synced_at.isoformat()}")
    print_sync_state(state)


def main():
    """Main entry point for setuptools console script."""
    cli()


if __name__ == "__main__":
    main()
