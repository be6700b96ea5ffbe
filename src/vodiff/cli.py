from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import click

from vodiff.diff.grouping import changed_sections, slice_lines
from vodiff.diff.models import ChangeKind
from vodiff.diff.unified import parse_unified_diff
from vodiff.diff.executor import BuiltinDiffExecutor
from vodiff.diff.merge3 import BuiltinMerge
from vodiff.drift import has_conflict_markers
from vodiff.errors import DiffToolError, NotAPatchError
from vodiff.logger import LogManager, apply_logging_settings, init_log_manager
from vodiff.patch import apply_patches_with_diagnostics, get_supported_formats, parse_patches
from vodiff.settings import Settings, build_executor, build_merge, load_settings

_PREFIX = {
    ChangeKind.ADDED: "+",
    ChangeKind.REMOVED: "-",
    ChangeKind.UNCHANGED: " ",
}


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


def _echo_log_summary(manager: LogManager) -> None:
    records = manager.get_records()
    click.echo(f"{len(records)} log record(s)", err=True)
    for record in records:
        click.echo(f"[{record.level_name}] {record.message}", err=True)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Settings file (.yaml, .yml, .json, .json5, .jsonc).",
)
@click.option("--verbose", is_flag=True, help="Print captured log records after the command.")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """Search/replace patches, grouped line diffs and three-way merges."""
    settings = load_settings(config_path) if config_path else Settings()
    if settings.logging is not None:
        apply_logging_settings(settings.logging)
    if verbose:
        manager = init_log_manager()
        manager.clear()
        logging.getLogger("vodiff").setLevel(logging.DEBUG)
        ctx.call_on_close(lambda: _echo_log_summary(manager))
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@main.command("apply")
@click.argument("patch_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("target", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["auto", *get_supported_formats()]),
    default="auto",
    show_default=True,
)
@click.option("--write", is_flag=True, help="Write the result back to TARGET.")
def apply_cmd(patch_file: Path, target: Path, fmt: str, write: bool) -> None:
    """Apply the patches in PATCH_FILE to TARGET."""
    try:
        patches = parse_patches(_read(patch_file), fmt)
    except NotAPatchError as e:
        raise click.ClickException(str(e)) from e

    text, diagnostics = apply_patches_with_diagnostics(patches, _read(target))
    for diag in diagnostics:
        click.echo(f"{diag.kind.value}: {diag.describe()}", err=True)

    if write:
        target.write_text(text, encoding="utf-8")
        click.echo(f"Applied {len(patches)} patch(es) to {target}", err=True)
    else:
        click.echo(text, nl=False)


@main.command("diff")
@click.argument("old", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("new", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--min-separation", type=int, default=None, help="Context lines around changes.")
@click.option("--builtin", is_flag=True, help="Use the in-process diff instead of git.")
@click.pass_context
def diff_cmd(
    ctx: click.Context, old: Path, new: Path, min_separation: Optional[int], builtin: bool
) -> None:
    """Print the grouped line changes between OLD and NEW."""
    settings = _settings(ctx)
    executor = (
        BuiltinDiffExecutor(context_lines=settings.executor.context_lines)
        if builtin
        else build_executor(settings.executor)
    )
    if min_separation is None:
        min_separation = settings.session.min_separation

    old_text, new_text = _read(old), _read(new)
    ext = new.suffix.lstrip(".") or None
    try:
        raw = asyncio.run(executor.unified_diff(old_text, new_text, ext))
    except DiffToolError as e:
        raise click.ClickException(str(e)) from e

    lines = parse_unified_diff(old_text, new_text, raw)
    if not any(line.is_change for line in lines):
        click.echo("No changes", err=True)
        return
    for section in changed_sections(lines, min_separation):
        click.echo(f"@@ {section.key} @@")
        for line in slice_lines(lines, section):
            click.echo(f"{_PREFIX[line.kind]}{line.text}")


@main.command("merge")
@click.argument("base", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("current", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("target", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--builtin", is_flag=True, help="Use the in-process merge instead of git.")
@click.pass_context
def merge_cmd(
    ctx: click.Context, base: Path, current: Path, target: Path, builtin: bool
) -> None:
    """Merge TARGET onto CURRENT using BASE as the common ancestor."""
    merge = BuiltinMerge() if builtin else build_merge(_settings(ctx).executor)
    try:
        merged = asyncio.run(merge.merge(_read(base), _read(current), _read(target)))
    except DiffToolError as e:
        raise click.ClickException(str(e)) from e

    click.echo(merged, nl=False)
    if has_conflict_markers(merged):
        click.echo("Merge produced conflicts", err=True)
        ctx.exit(1)


if __name__ == "__main__":
    main()
