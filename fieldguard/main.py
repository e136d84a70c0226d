from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, NoReturn, Optional

import typer

from fieldguard.config import load_settings
from fieldguard.domain.schema import resolve_schema
from fieldguard.errors import ConfigurationError, DecodeError, SchemaError
from fieldguard.ingest.decoders import default_registry
from fieldguard.ingest.events import flatten_event
from fieldguard.orchestrator import build_pipeline
from fieldguard.planning.plan_builder import build_plan
from fieldguard.reporter import print_plan, print_summary
from fieldguard.utils.logging import configure_logging

app = typer.Typer(help="Per-field versioned writes from Kafka records into DynamoDB.")


def _overrides(**values: Any) -> Dict[str, Any]:
    return {name: value for name, value in values.items() if value is not None}


def _fail(message: str, code: int = 2) -> NoReturn:
    typer.echo(message, err=True)
    raise typer.Exit(code)


@app.command()
def info(
    table: Optional[str] = typer.Option(None, "--table", "-t", help="Override DYNAMODB_TABLE_NAME."),
    record_type: Optional[str] = typer.Option(None, "--type", help="Override RECORD_TYPE."),
) -> None:
    """
    Show effective configuration values.
    """
    try:
        settings = load_settings(**_overrides(table_name=table, record_type=record_type))
    except ConfigurationError as exc:
        _fail(str(exc))
    typer.echo(
        f"table={settings.table_name} type={settings.record_type} dry_run={settings.dry_run} | "
        f"concurrency={settings.max_concurrency} retries={settings.retry_max_attempts} "
        f"timeouts=({settings.connect_timeout_seconds}s connect, {settings.read_timeout_seconds}s read) | "
        f"region={settings.aws_region or 'default'} endpoint={settings.endpoint_url or 'default'}"
    )


@app.command()
def types() -> None:
    """
    List registered record types with their key and version fields.
    """
    registry = default_registry()
    for name in registry.names():
        resolved = resolve_schema(registry.get(name).schema)
        typer.echo(
            f"{name}: key={resolved.key_field} version={resolved.version_field} "
            f"payload={len(resolved.payload_fields)} field(s)"
        )


@app.command()
def plan(
    record_json: str = typer.Argument(..., help="JSON object of one record."),
    record_type: str = typer.Option(..., "--type", help="Record type of the JSON document."),
    shadow_suffix: str = typer.Option("_version", "--shadow-suffix", help="Shadow attribute suffix."),
) -> None:
    """
    Show the conditional update a single record would produce (no store call).
    """
    try:
        kind = default_registry().get(record_type)
        document = json.loads(record_json)
        record = kind.from_document(document, source="cli")
        update_plan = build_plan(record, resolve_schema(kind.schema, shadow_suffix))
    except json.JSONDecodeError as exc:
        _fail(f"Invalid JSON: {exc}")
    except (ConfigurationError, DecodeError, SchemaError) as exc:
        _fail(f"{type(exc).__name__}: {exc}")
    print_plan(update_plan)


@app.command()
def replay(
    event_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Saved Kafka Lambda event (JSON)."),
    dry_run: Optional[bool] = typer.Option(None, "--dry-run/--live", help="Override DRY_RUN."),
    table: Optional[str] = typer.Option(None, "--table", "-t", help="Override DYNAMODB_TABLE_NAME."),
    record_type: Optional[str] = typer.Option(None, "--type", help="Override RECORD_TYPE."),
    concurrency: Optional[int] = typer.Option(None, "--concurrency", "-c", help="Override MAX_BATCH_SIZE."),
) -> None:
    """
    Run the pipeline over a saved Kafka event and print the summary.
    """
    try:
        settings = load_settings(
            **_overrides(
                dry_run=dry_run,
                table_name=table,
                record_type=record_type,
                max_concurrency=concurrency,
            )
        )
        configure_logging(level=settings.log_level, json_logs=settings.json_logs)
        pipeline = build_pipeline(settings)
    except ConfigurationError as exc:
        _fail(str(exc))

    try:
        event = json.loads(event_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        _fail(f"Invalid event file {event_file}: {exc}")

    summary = pipeline.run(flatten_event(event))
    print_summary(summary)
    if summary.has_fatal:
        raise typer.Exit(1)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
