"""CLI interface for Reclaim."""

from __future__ import annotations

import dataclasses
import json
import logging
import sys

import click

from reclaim import backup
from reclaim.core.engine import ReclaimEngine, requires_confirmation
from reclaim.core.registry import ScannerRegistry, load_scanners
from reclaim.errors import NotFoundError
from reclaim.models.scan_result import ScanOptions, ScanResult
from reclaim.settings import Settings
from reclaim.utils import bytes_to_human, format_relative_time


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _build_engine(settings: Settings) -> ReclaimEngine:
    registry = ScannerRegistry()
    load_scanners(registry, settings)
    return ReclaimEngine(registry)


def _scan_options(
    settings: Settings,
    min_size: int | None,
    days_old: int | None,
    max_depth: int | None,
) -> ScanOptions:
    options = settings.scan_options()
    overrides = {
        key: value
        for key, value in (("min_size", min_size), ("days_old", days_old), ("max_depth", max_depth))
        if value is not None
    }
    return dataclasses.replace(options, **overrides)


def _result_to_dict(result: ScanResult) -> dict:
    return {
        "category": result.category.id,
        "name": result.category.name,
        "safety_level": result.category.safety_level.value,
        "total_size": result.total_size,
        "item_count": len(result.items),
        "error": result.error,
        "skipped": [{"path": str(s.path), "reason": s.reason} for s in result.skipped],
        "items": [
            {
                "path": str(i.path),
                "size_bytes": i.size_bytes,
                "name": i.display_name,
                "is_directory": i.is_directory,
                "description": i.description,
            }
            for i in result.items
        ],
    }


def _safety_tag(level: str) -> str:
    if level == "moderate":
        return click.style(" [moderate risk]", fg="yellow")
    if level == "risky":
        return click.style(" [risky]", fg="red")
    return ""


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
@click.pass_context
def main(ctx: click.Context, verbose: int) -> None:
    """Reclaim — find reclaimable disk space and remove it with an undo path."""
    _setup_logging(verbose)
    ctx.obj = Settings()


# ── list ─────────────────────────────────────────────────────────────────

@main.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def list_cmd(settings: Settings, as_json: bool) -> None:
    """List available scanners."""
    engine = _build_engine(settings)
    categories = [s.category for s in engine.registry]

    if as_json:
        data = [
            {
                "id": c.id,
                "name": c.name,
                "group": c.group,
                "safety_level": c.safety_level.value,
                "description": c.description,
            }
            for c in categories
        ]
        click.echo(json.dumps(data, indent=2))
        return

    if not categories:
        click.echo("No scanners enabled.")
        return

    grouped: dict[str, list] = {}
    for category in categories:
        grouped.setdefault(category.group, []).append(category)

    for group, members in grouped.items():
        click.echo(f"\n  {click.style(group, fg='blue', bold=True)}")
        for c in members:
            click.echo(f"    {click.style(c.id, fg='cyan', bold=True):30s}  {c.name}{_safety_tag(c.safety_level.value)}")
            click.echo(f"      {c.description}")
    click.echo()


# ── scan ─────────────────────────────────────────────────────────────────

@main.command()
@click.argument("scanner_ids", nargs=-1)
@click.option("--min-size", type=click.IntRange(min=0), default=None, help="Smallest file to compare, in bytes")
@click.option("--days-old", type=click.IntRange(min=0), default=None, help="Project staleness threshold in days")
@click.option("--max-depth", type=click.IntRange(min=0), default=None, help="How deep to descend below each root")
@click.option("--items", "show_items", is_flag=True, help="List every item found")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def scan(
    settings: Settings,
    scanner_ids: tuple[str, ...],
    min_size: int | None,
    days_old: int | None,
    max_depth: int | None,
    show_items: bool,
    as_json: bool,
) -> None:
    """Scan for reclaimable space (preview only, never deletes)."""
    engine = _build_engine(settings)
    options = _scan_options(settings, min_size, days_old, max_depth)

    def on_progress(scanner_id: str, status: str) -> None:
        if not as_json and status == "error":
            click.echo(f"  {click.style('✗', fg='red')} {scanner_id:35s} — error during scan")

    results = engine.scan(list(scanner_ids) or None, options, on_progress=on_progress)

    if as_json:
        click.echo(json.dumps([_result_to_dict(r) for r in results], indent=2))
        return

    click.echo()
    for result in results:
        _print_result(result, show_items)

    total = sum(r.total_size for r in results)
    click.echo(f"\nTotal reclaimable: {click.style(bytes_to_human(total), fg='green', bold=True)}\n")


def _print_result(result: ScanResult, show_items: bool = False) -> None:
    name = result.category.name
    if result.error:
        click.echo(f"  {click.style('!', fg='yellow')} {name:35s} — could not read: {result.error}")
    if result.total_size > 0:
        click.echo(
            f"  {click.style('✓', fg='green')} {name:35s} — "
            f"{click.style(bytes_to_human(result.total_size), fg='green', bold=True)} "
            f"({len(result.items):,} items){_safety_tag(result.category.safety_level.value)}"
        )
    elif not result.error:
        click.echo(f"  {click.style('·', fg='bright_black')} {name:35s} — nothing to clean")
    if show_items:
        for item in result.items:
            note = f"  {click.style(item.description, fg='bright_black')}" if item.description else ""
            click.echo(f"      {bytes_to_human(item.size_bytes):>10s}  {item.path}{note}")
        for entry in result.skipped:
            click.echo(f"      {click.style('skipped', fg='yellow'):>10s}  {entry.path}  {click.style(entry.reason, fg='bright_black')}")
    elif result.skipped:
        click.echo(f"      {click.style(f'{len(result.skipped)} unreadable entries skipped', fg='bright_black')}")


# ── clean ────────────────────────────────────────────────────────────────

@main.command()
@click.argument("scanner_ids", nargs=-1)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--dry-run", is_flag=True, help="Show what would be removed without doing it")
@click.option("--no-backup", is_flag=True, help="Delete right away instead of moving items to the backup store")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def clean(
    settings: Settings,
    scanner_ids: tuple[str, ...],
    yes: bool,
    dry_run: bool,
    no_backup: bool,
    as_json: bool,
) -> None:
    """Scan and clean the selected categories."""
    engine = _build_engine(settings)
    scan_results = engine.scan(list(scanner_ids) or None, settings.scan_options())
    actionable = [r for r in scan_results if r.items]

    if not actionable:
        if as_json:
            click.echo(json.dumps({"status": "nothing_to_clean", "results": []}))
        else:
            click.echo("Nothing to clean.")
        return

    if not as_json:
        click.echo()
        for result in actionable:
            _print_result(result)
        total = sum(r.total_size for r in actionable)
        click.echo(f"\nTotal: {click.style(bytes_to_human(total), fg='green', bold=True)}\n")

    needs_confirm = any(requires_confirmation(r.category) for r in actionable)
    if needs_confirm and not (yes or dry_run):
        if as_json:
            click.echo(json.dumps({"status": "confirmation_required", "results": []}))
            sys.exit(1)
        if not click.confirm("Remove these items?", default=False):
            click.echo("Aborted.")
            return

    selection = {r.category.id: r.items for r in actionable}
    clean_results = engine.clean(selection, dry_run=dry_run, use_backup=not no_backup)

    if as_json:
        data = [
            {
                "category": r.category.id,
                "freed_bytes": r.freed_bytes,
                "files_removed": r.files_removed,
                "errors": r.errors,
                "backup_dir": str(r.backup_dir) if r.backup_dir else None,
            }
            for r in clean_results
        ]
        status = "dry_run" if dry_run else "cleaned"
        click.echo(json.dumps({"status": status, "results": data}, indent=2))
        return

    total_freed = 0
    backup_dirs = set()
    for result in clean_results:
        name = result.category.name
        verb = "would free" if dry_run else "freed"
        if result.errors:
            click.echo(
                f"  {click.style('!', fg='yellow')} {name:35s} — "
                f"{verb} {bytes_to_human(result.freed_bytes)}, {len(result.errors)} error(s)"
            )
            for error in result.errors:
                click.echo(f"      {click.style(error, fg='bright_black')}")
        else:
            click.echo(
                f"  {click.style('✓', fg='green')} {name:35s} — "
                f"{verb} {click.style(bytes_to_human(result.freed_bytes), fg='green', bold=True)}"
            )
        total_freed += result.freed_bytes
        if result.backup_dir:
            backup_dirs.add(result.backup_dir)

    if dry_run:
        click.echo("\n(dry run — nothing was removed)\n")
        return

    click.echo(f"\nTotal freed: {click.style(bytes_to_human(total_freed), fg='green', bold=True)}")
    for backup_dir in sorted(backup_dirs):
        click.echo(f"Undo with: reclaim backups restore {backup_dir.name}")
    click.echo()


# ── backups ──────────────────────────────────────────────────────────────

@main.group()
def backups() -> None:
    """Manage the backup store."""


@backups.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def backups_list(as_json: bool) -> None:
    """List backup generations, newest first."""
    entries = backup.list_backups()

    if as_json:
        data = [{"name": b.name, "date": b.date.isoformat(), "size": b.size} for b in entries]
        click.echo(json.dumps(data, indent=2))
        return

    if not entries:
        click.echo("No backups.")
        return

    click.echo(f"\n  Backups in {backup.get_backup_dir()}\n")
    for b in entries:
        click.echo(
            f"  {click.style(b.name, fg='cyan', bold=True):40s} "
            f"{bytes_to_human(b.size):>10s}  {format_relative_time(b.date)}"
        )
    click.echo()


@backups.command("restore")
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def backups_restore(name: str, yes: bool) -> None:
    """Move everything in backup NAME back where it came from."""
    try:
        backup_dir = backup.find_backup(name)
    except NotFoundError as e:
        click.echo(f"Backup '{name}' not found ({e.path}).", err=True)
        sys.exit(1)

    if not yes and not click.confirm(f"Restore {name}?", default=True):
        click.echo("Aborted.")
        return

    outcome = backup.restore_backup(backup_dir)
    click.echo(f"Restored {outcome.success} file(s), {outcome.failed} failed.")
    for failure in outcome.failures:
        click.echo(f"  {click.style('!', fg='yellow')} {failure.path}: {failure.reason}")
    if outcome.failed:
        sys.exit(1)


@backups.command("prune")
@click.option("--days", type=click.IntRange(min=0), default=None, help="Remove backups older than this many days")
@click.pass_obj
def backups_prune(settings: Settings, days: int | None) -> None:
    """Delete backups past their retention window."""
    max_age = settings.retention_days if days is None else days
    removed = backup.clean_old_backups(max_age)
    click.echo(f"Removed {removed} backup(s) older than {max_age} day(s).")
