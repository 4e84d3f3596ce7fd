"""CLI interface for managing test records."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TypeVar

import typer

from records_core.errors import FieldValidationError, RecordStoreError
from records_core.schemas import Record, ResultStatus
from records_core.validation import clean_result, parse_record_id

from manager.config import ManagerConfig, resolve_config
from manager.discovery import find_record_files
from manager.operations import RecordManager
from manager.prompts import InputRetryPolicy

T = TypeVar("T")

app = typer.Typer(help="Test Record Manager CLI")


@dataclass
class CliState:
    config: ManagerConfig
    file_override: str | None = None

    @property
    def data_file(self) -> Path:
        return self.config.resolve_data_file(self.file_override)


@app.callback()
def main(
    ctx: typer.Context,
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Record file to operate on"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Path to YAML config"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable info logging"),
) -> None:
    """Manage a CSV file of test records."""
    try:
        config = resolve_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        typer.secho(f"❌ Invalid config: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    level = logging.INFO if verbose else getattr(logging, config.log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    ctx.obj = CliState(config=config, file_override=file)


@contextmanager
def _reported_errors() -> Iterator[None]:
    try:
        yield
    except RecordStoreError as e:
        typer.secho(f"❌ {type(e).__name__}: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)


def _open_manager(state: CliState) -> RecordManager:
    manager = RecordManager.open(
        state.data_file,
        settings=state.config.store_settings(),
        search_min_length=state.config.search_min_length,
    )
    for warning in manager.load_warnings:
        typer.secho(f"⚠️  {warning}", fg=typer.colors.YELLOW, err=True)
    return manager


def _format_record(record: Record) -> str:
    status = "active" if record.active else "deleted"
    return (
        f"{record.id:>6}  {record.system_name:<30}  {record.test_type:<20}  "
        f"{record.result.value:<8}  {status}"
    )


def _echo_records(records: list[Record]) -> None:
    if not records:
        typer.secho("No records found.", fg=typer.colors.YELLOW)
        return
    typer.echo(f"{'ID':>6}  {'System':<30}  {'Type':<20}  {'Result':<8}  State")
    for record in records:
        typer.echo(_format_record(record))


def _prompt_value(
    state: CliState,
    field: str,
    label: str,
    parse: Callable[[str], T],
    default: str | None = None,
) -> T:
    policy = InputRetryPolicy(state.config.max_input_attempts)

    def _read() -> str:
        return typer.prompt(label, default=default) if default is not None else typer.prompt(label)

    def _report(error: FieldValidationError, remaining: int) -> None:
        typer.secho(f"❌ {error.reason} ({remaining} attempt(s) left)", fg=typer.colors.RED, err=True)

    return policy.acquire(field, _read, parse, _report)


@app.command()
def init(ctx: typer.Context) -> None:
    """Create a new, empty record file."""
    state: CliState = ctx.obj
    with _reported_errors():
        RecordManager.create(state.data_file, settings=state.config.store_settings())
    typer.secho(f"✅ Created {state.data_file}", fg=typer.colors.GREEN)


@app.command()
def files(
    ctx: typer.Context,
    directory: Optional[str] = typer.Argument(None, help="Directory to scan (defaults to data_dir)"),
) -> None:
    """List candidate record files in a directory."""
    state: CliState = ctx.obj
    target = directory or state.config.data_dir
    try:
        candidates = find_record_files(target, encoding=state.config.encoding)
    except NotADirectoryError as e:
        typer.secho(f"❌ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    if not candidates:
        typer.secho("No record files found.", fg=typer.colors.YELLOW)
        return

    typer.secho(f"\n📁 Found {len(candidates)} file(s):\n", fg=typer.colors.BLUE)
    for candidate in candidates:
        marker = "✓" if candidate.valid_header else "✗"
        typer.echo(f"  {marker} {candidate.name}")


@app.command(name="list")
def list_records(
    ctx: typer.Context,
    deleted: bool = typer.Option(False, "--deleted", help="Show only soft-deleted records"),
    show_all: bool = typer.Option(False, "--all", help="Show active and deleted records"),
) -> None:
    """List records in table order."""
    state: CliState = ctx.obj
    with _reported_errors():
        manager = _open_manager(state)
        if deleted:
            records = manager.list_deleted()
        else:
            records = manager.list_records(include_deleted=show_all)
    _echo_records(records)


@app.command()
def show(
    ctx: typer.Context,
    record_id: str = typer.Argument(..., help="Record ID"),
) -> None:
    """Show one record, active or deleted."""
    state: CliState = ctx.obj
    with _reported_errors():
        record = _open_manager(state).get(record_id)
    _echo_records([record])


@app.command()
def add(
    ctx: typer.Context,
    system_name: Optional[str] = typer.Option(None, "--system-name", "-s", help="System under test"),
    test_type: Optional[str] = typer.Option(None, "--test-type", "-t", help="Alphanumeric test type"),
    result: Optional[str] = typer.Option(None, "--result", "-r", help="Failed, Passed, Pending or Success"),
) -> None:
    """Add a record. Missing fields are prompted for."""
    state: CliState = ctx.obj
    with _reported_errors():
        manager = _open_manager(state)
        if system_name is None:
            system_name = _prompt_value(state, "system_name", "System name", manager.validate_system_name)
        if test_type is None:
            test_type = _prompt_value(state, "test_type", "Test type", manager.validate_test_type)
        status = (
            clean_result(result)
            if result is not None
            else _prompt_value(state, "result", "Result", clean_result, default=ResultStatus.PENDING.value)
        )
        record = manager.add(system_name, test_type, status)
    typer.secho(f"✅ Added record {record.id}", fg=typer.colors.GREEN)
    _echo_records([record])


@app.command()
def update(
    ctx: typer.Context,
    record_id: str = typer.Argument(..., help="Record ID"),
    system_name: Optional[str] = typer.Option(None, "--system-name", "-s"),
    test_type: Optional[str] = typer.Option(None, "--test-type", "-t"),
    result: Optional[str] = typer.Option(None, "--result", "-r"),
) -> None:
    """Edit fields of an active record and save them."""
    state: CliState = ctx.obj
    changes = {
        name: value
        for name, value in (("system_name", system_name), ("test_type", test_type), ("result", result))
        if value is not None
    }
    if not changes:
        typer.secho("❌ Nothing to update; pass at least one field option", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    with _reported_errors():
        record = _open_manager(state).update(record_id, **changes)
    typer.secho(f"✅ Updated record {record.id}", fg=typer.colors.GREEN)
    _echo_records([record])


@app.command()
def delete(
    ctx: typer.Context,
    record_id: str = typer.Argument(..., help="Record ID"),
) -> None:
    """Soft-delete a record so it can be recovered later."""
    state: CliState = ctx.obj
    with _reported_errors():
        record = _open_manager(state).soft_delete(record_id)
    typer.secho(f"✅ Deleted record {record.id} (recoverable)", fg=typer.colors.GREEN)


@app.command()
def purge(
    ctx: typer.Context,
    record_id: str = typer.Argument(..., help="Record ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Permanently remove a soft-deleted record."""
    state: CliState = ctx.obj
    with _reported_errors():
        record_id_value = parse_record_id(record_id)
        if not yes and not typer.confirm(f"Permanently delete record {record_id_value}?"):
            typer.secho("Cancelled.", fg=typer.colors.YELLOW)
            raise typer.Exit(1)
        record = _open_manager(state).permanent_delete(record_id_value)
    typer.secho(f"✅ Permanently deleted record {record.id}", fg=typer.colors.GREEN)


@app.command()
def recover(
    ctx: typer.Context,
    record_id: str = typer.Argument(..., help="Record ID"),
) -> None:
    """Restore a soft-deleted record."""
    state: CliState = ctx.obj
    with _reported_errors():
        record = _open_manager(state).recover(record_id)
    typer.secho(f"✅ Recovered record {record.id}", fg=typer.colors.GREEN)


@app.command()
def search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Text to look for (case-insensitive)"),
) -> None:
    """Search active records by ID, system name, test type or result."""
    state: CliState = ctx.obj
    with _reported_errors():
        records = _open_manager(state).search(query)
    _echo_records(records)


@app.command()
def stats(ctx: typer.Context) -> None:
    """Show record counts for the current file."""
    state: CliState = ctx.obj
    with _reported_errors():
        summary = _open_manager(state).stats()
    typer.secho(f"\n📈 {state.data_file}:", fg=typer.colors.BLUE)
    for key, value in summary.items():
        typer.echo(f"   {key}: {value}")


if __name__ == "__main__":
    app()
