"""
Sample data generator for the Firestore sink.

Writes a deterministic Avro-style schema and a JSONL record file that exercise
every supported type: scalars, timestamps, a nullable union, a nested record,
an array and base64-encoded bytes.
"""

from __future__ import annotations

import base64
import json
import random
import sys
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict

import typer

app = typer.Typer(help="Generate a sample schema and JSONL records for the Firestore sink.")

SCHEMA: Dict[str, Any] = {
    "type": "record",
    "name": "event",
    "fields": [
        {"name": "id", "type": "string"},
        {"name": "category", "type": "string"},
        {"name": "amount", "type": "double"},
        {"name": "quantity", "type": "int"},
        {"name": "score", "type": "float"},
        {"name": "is_active", "type": "boolean"},
        {"name": "created_at", "type": {"type": "long", "logicalType": "timestamp-micros"}},
        {"name": "note", "type": ["null", "string"]},
        {"name": "checksum", "type": "bytes"},
        {"name": "tags", "type": {"type": "array", "items": "string"}},
        {
            "name": "source",
            "type": {
                "type": "record",
                "name": "source",
                "fields": [
                    {"name": "system", "type": "string"},
                    {"name": "sequence", "type": "long"},
                ],
            },
        },
    ],
}


def _generate_records(records_path: Path, rows: int, seed: int) -> None:
    rng = random.Random(seed)
    categories = ["alpha", "beta", "gamma", "delta"]
    base_micros = int(datetime(2024, 1, 1, tzinfo=UTC).timestamp() * 1_000_000)

    with records_path.open("w", encoding="utf-8") as f:
        for i in range(rows):
            record = {
                "id": f"event-{i:08d}",
                "category": rng.choice(categories),
                "amount": round(rng.uniform(1, 10_000), 2),
                "quantity": rng.randint(1, 100),
                "score": rng.random(),
                "is_active": rng.choice([True, False]),
                "created_at": base_micros + i * 1_000_000,
                "note": rng.choice([None, "manual", "imported"]),
                "checksum": base64.b64encode(rng.randbytes(8)).decode("ascii"),
                "tags": rng.sample(categories, k=rng.randint(0, 3)),
                "source": {"system": "generator", "sequence": i},
            }
            f.write(json.dumps(record) + "\n")


def _write_schema(schema_path: Path) -> None:
    with schema_path.open("w", encoding="utf-8") as f:
        json.dump(SCHEMA, f, indent=2)


@app.command()
def main(
    rows: int = typer.Option(
        1_000,
        "--rows",
        "-r",
        help="Number of records to generate.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output_dir: Path = typer.Option(
        Path("data"),
        "--output-dir",
        "-o",
        help="Directory for schema.json and records.jsonl.",
    ),
) -> None:
    """
    Generate schema.json and records.jsonl.
    """
    start = time.perf_counter()
    output_dir.mkdir(parents=True, exist_ok=True)
    schema_path = output_dir / "schema.json"
    records_path = output_dir / "records.jsonl"

    typer.echo(f"Generating {rows:,} records -> {records_path} (seed={seed})")
    _write_schema(schema_path)
    _generate_records(records_path, rows=rows, seed=seed)
    duration = time.perf_counter() - start
    typer.echo(f"Done in {duration:.2f}s. Schema written to {schema_path}.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
