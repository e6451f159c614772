"""
Runner that loads a schema and a JSONL record file, writes them through the
Firestore sink, profiles the run and optionally persists a report.

Usage (example from CLI):
    from firestore_sink.runner import RunConfig, run_sink

    report = run_sink(RunConfig(input_path="records.jsonl", schema_path="schema.json"))
    print(report["documents"], report["throughput_rows_per_sec"])

Reports are saved to `results/` when persisting:
- `results/latest.json` (last run)
- `results/run-<timestamp>.json` (timestamped archive)
"""

from __future__ import annotations

import itertools
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from firestore_sink.config import Settings, get_settings
from firestore_sink.domain.models import Record
from firestore_sink.domain.schema import load_schema
from firestore_sink.sink import FirestoreSink, SinkResult
from firestore_sink.sources import read_jsonl
from firestore_sink.utils.logging import get_logger
from firestore_sink.utils.profiler import ProfileStats, profile_block
from firestore_sink.writers.abstract import StoreClient

log = get_logger(__name__)


@dataclass(frozen=True)
class RunConfig:
    """
    Options for one sink run.

    Attributes
    ----------
    input_path : Path | str
        JSONL file with one record per line.
    schema_path : Path | str
        Avro-style JSON schema describing the records.
    limit : int | None
        Stop after this many records.
    check_connectivity : bool
        Prove the Firestore connection during validation.
    persist : bool
        Write the run report to `results_dir`.
    include_ids : bool
        Keep every written document id in the report.
    """

    input_path: Path | str
    schema_path: Path | str
    limit: Optional[int] = None
    check_connectivity: bool = False
    persist: bool = False
    results_dir: Path | str = "results"
    include_ids: bool = False


def _round_float(value: float, decimals: int = 2) -> float:
    """Round a float to specified decimal places for human-readable output."""
    return round(value, decimals)


def _persist_results(payload: dict, results_dir: Path) -> None:
    results_dir.mkdir(parents=True, exist_ok=True)
    latest_path = results_dir / "latest.json"
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    archive_path = results_dir / f"run-{timestamp}.json"

    with latest_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)
    with archive_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)

    log.info("Results persisted", extra={"latest": str(latest_path), "archive": str(archive_path)})


def _merge_result(result: SinkResult, stats: ProfileStats, include_ids: bool = False) -> Dict[str, Any]:
    """Combine the sink's counts with profiler stats, rounding floats for readability."""
    merged: Dict[str, Any] = dict(result)
    ids = merged.pop("document_ids", [])
    if include_ids:
        merged["document_ids"] = ids
    merged.setdefault("rows", 0)
    merged["duration_seconds"] = _round_float(stats.duration_seconds)
    merged["throughput_rows_per_sec"] = _round_float(stats.rate(merged["rows"]))
    merged["peak_rss_bytes"] = stats.peak_rss_bytes
    merged["cpu_percent"] = _round_float(stats.cpu_percent, 1) if stats.cpu_percent else None
    return merged


def write_records(
    records: Iterable[Record],
    sink: FirestoreSink,
    label: str = "sink-run",
    include_ids: bool = False,
) -> Dict[str, Any]:
    """Write a record stream through `sink` under the profiler and close it afterwards."""
    log.info(f"[SINK START] {label}", extra={"batch_size": sink.committer.batch_size})
    try:
        with profile_block(label) as stats:
            result = sink.write(records)
    finally:
        sink.close()
    log.info(
        f"[SINK SUCCESS] {label}",
        extra={"rows": result.get("rows"), "batches": result.get("batches")},
    )
    return _merge_result(result, stats, include_ids=include_ids)


def run_sink(
    run_config: RunConfig,
    settings: Optional[Settings] = None,
    store: Optional[StoreClient] = None,
) -> Dict[str, Any]:
    """
    Validate, write and report one run.

    Parameters
    ----------
    run_config : RunConfig
        Input files and reporting options.
    settings : Settings | None
        Defaults to `get_settings()`.
    store : StoreClient | None
        Defaults to a FirestoreStore built from settings.

    Returns
    -------
    dict
        Row/document/batch counts, timings and the run's settings.

    Raises
    ------
    ConfigValidationError
        Before any record is read, when settings or schema are unusable.
    CommitError
        When a batch is rejected; earlier batches stay written.
    """
    settings = settings or get_settings()
    schema = load_schema(run_config.schema_path)
    sink = FirestoreSink.from_settings(
        settings, schema, store=store, check_connectivity=run_config.check_connectivity
    )

    records: Iterable[Record] = read_jsonl(run_config.input_path, schema)
    if run_config.limit is not None:
        records = itertools.islice(records, run_config.limit)

    report = write_records(records, sink, include_ids=run_config.include_ids)
    report.update(
        {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "collection": settings.collection,
            "database": settings.resolved_database,
            "id_type": sink.config.id_type.value,
            "batch_size": settings.batch_size,
            "input": str(run_config.input_path),
        }
    )

    if run_config.persist:
        _persist_results(report, Path(run_config.results_dir))

    log.info(
        "[RUN COMPLETE]",
        extra={"documents": report.get("documents"), "collection": settings.collection},
    )
    return report


__all__ = ["RunConfig", "run_sink", "write_records"]
