from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import typer

from firestore_sink.config import get_settings
from firestore_sink.domain.schema import load_schema
from firestore_sink.exceptions import CommitError, ConfigValidationError, SchemaError, TransformError
from firestore_sink.reporter import print_failures, print_report
from firestore_sink.runner import RunConfig, run_sink
from firestore_sink.utils.logging import configure_logging
from firestore_sink.validation import validate

app = typer.Typer(help="Write JSONL records to a Cloud Firestore collection in batches.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"Firestore={settings.project or 'auto-detect'}/{settings.resolved_database}/{settings.collection} | "
        f"id_type={settings.id_type} id_field={settings.id_alias or '-'} "
        f"batch={settings.batch_size} attempts={settings.commit_max_attempts}"
    )


@app.command("validate")
def validate_command(
    schema_path: Optional[Path] = typer.Option(
        None,
        "--schema",
        "-s",
        help="Schema JSON to check the settings against.",
    ),
    check_connection: bool = typer.Option(
        False,
        "--check-connection",
        help="Also build a Firestore client to prove credentials and project resolve.",
    ),
) -> None:
    """
    Validate settings (and optionally a schema) without writing anything.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    try:
        schema = load_schema(schema_path) if schema_path else None
        validate(settings, schema, check_connectivity=check_connection)
    except SchemaError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2)
    except ConfigValidationError as exc:
        print_failures(exc.failures)
        raise typer.Exit(code=2)
    typer.echo("Configuration is valid.")


@app.command()
def run(
    input_path: Path = typer.Option(..., "--input", "-i", help="JSONL file, one record per line."),
    schema_path: Path = typer.Option(..., "--schema", "-s", help="Avro-style schema JSON."),
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-n",
        help="Stop after this many records.",
    ),
    check_connection: bool = typer.Option(
        False,
        "--check-connection",
        help="Verify the Firestore connection before writing.",
    ),
    persist: bool = typer.Option(
        False,
        "--persist",
        help="Save the run report under --results-dir.",
    ),
    results_dir: Path = typer.Option(Path("results"), "--results-dir", help="Directory for run reports."),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON instead of a table."),
) -> None:
    """
    Validate, transform and write every record, then print a run report.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    typer.echo(
        f"Writing {input_path} to collection='{settings.collection}' "
        f"(batch={settings.batch_size}, id_type={settings.id_type})."
    )
    try:
        report = run_sink(
            RunConfig(
                input_path=input_path,
                schema_path=schema_path,
                limit=limit,
                check_connectivity=check_connection,
                persist=persist,
                results_dir=results_dir,
            ),
            settings=settings,
        )
    except ConfigValidationError as exc:
        print_failures(exc.failures)
        raise typer.Exit(code=2)
    except (SchemaError, TransformError, CommitError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(report, indent=2))
    else:
        print_report(report)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
