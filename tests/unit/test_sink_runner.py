from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pytest

from firestore_sink.exceptions import CommitError, ConfigValidationError
from firestore_sink.runner import RunConfig, _merge_result, run_sink
from firestore_sink.sink import FirestoreSink
from firestore_sink.utils.profiler import ProfileStats

EXPECTED_ROWS = 3
EXPECTED_BATCHES = 2  # batch_size=2 -> one full batch plus the tail
EXPECTED_DURATION = 2.0
EXPECTED_THROUGHPUT = 50.0
EXPECTED_CPU = 12.3


def _run_config(records_path: Path, schema_path: Path, **kwargs) -> RunConfig:
    return RunConfig(input_path=records_path, schema_path=schema_path, **kwargs)


def test_run_sink_writes_every_record(
    sample_records_path, sample_schema_path, test_settings, fake_store
) -> None:
    report = run_sink(
        _run_config(sample_records_path, sample_schema_path),
        settings=test_settings,
        store=fake_store,
    )

    assert report["rows"] == EXPECTED_ROWS
    assert report["documents"] == EXPECTED_ROWS
    assert report["batches"] == EXPECTED_BATCHES
    assert report["collection"] == "events"
    assert report["database"] == "(default)"
    assert report["id_type"] == "Auto-generated id"
    assert "document_ids" not in report
    assert fake_store.closed


def test_documents_carry_firestore_types(
    sample_records_path, sample_schema_path, test_settings, fake_store
) -> None:
    run_sink(_run_config(sample_records_path, sample_schema_path), settings=test_settings, store=fake_store)

    first = fake_store.documents[0]
    assert first.id is None
    assert first.data["payload"] == b"hello"
    assert isinstance(first.data["ts"], datetime)
    assert first.data["source"] == {"n": 0}
    assert fake_store.documents[1].data["note"] is None


def test_custom_ids_come_from_the_id_field(
    sample_records_path, sample_schema_path, test_settings, fake_store
) -> None:
    settings = test_settings.model_copy(update={"id_type": "Custom name", "id_alias": "id"})

    report = run_sink(
        _run_config(sample_records_path, sample_schema_path, include_ids=True),
        settings=settings,
        store=fake_store,
    )

    assert [d.id for d in fake_store.documents] == ["doc-0", "doc-1", "doc-2"]
    assert all("id" not in d.data for d in fake_store.documents)
    assert report["document_ids"] == ["doc-0", "doc-1", "doc-2"]


def test_auto_ids_are_reported_when_requested(
    sample_records_path, sample_schema_path, test_settings, fake_store
) -> None:
    report = run_sink(
        _run_config(sample_records_path, sample_schema_path, include_ids=True),
        settings=test_settings,
        store=fake_store,
    )

    assert report["document_ids"] == ["auto-1", "auto-2", "auto-3"]


def test_limit_stops_early(sample_records_path, sample_schema_path, test_settings, fake_store) -> None:
    report = run_sink(
        _run_config(sample_records_path, sample_schema_path, limit=2),
        settings=test_settings,
        store=fake_store,
    )

    assert report["rows"] == 2
    assert report["batches"] == 1


def test_invalid_settings_write_nothing(
    sample_records_path, sample_schema_path, test_settings, fake_store
) -> None:
    settings = test_settings.model_copy(update={"batch_size": 0})

    with pytest.raises(ConfigValidationError):
        run_sink(_run_config(sample_records_path, sample_schema_path), settings=settings, store=fake_store)

    assert fake_store.commit_calls == 0


def test_rejected_batch_aborts_run_and_keeps_earlier_batches(
    sample_records_path, sample_schema_path, test_settings, make_fake_store
) -> None:
    store = make_fake_store(fail_on_batch=2)

    with pytest.raises(CommitError) as exc_info:
        run_sink(_run_config(sample_records_path, sample_schema_path), settings=test_settings, store=store)

    assert len(store.batches) == 1
    assert len(exc_info.value.entries) == 1
    assert store.closed


def test_persist_writes_latest_and_archive(
    tmp_path, sample_records_path, sample_schema_path, test_settings, fake_store
) -> None:
    results_dir = tmp_path / "results"

    report = run_sink(
        _run_config(sample_records_path, sample_schema_path, persist=True, results_dir=results_dir),
        settings=test_settings,
        store=fake_store,
    )

    latest = json.loads((results_dir / "latest.json").read_text(encoding="utf-8"))
    assert latest["documents"] == report["documents"]
    assert len(list(results_dir.glob("run-*.json"))) == 1


def test_sink_write_flushes_tail(sample_schema, sample_records, test_settings, fake_store) -> None:
    sink = FirestoreSink.from_settings(test_settings, sample_schema, store=fake_store)

    result = sink.write(sample_records)

    assert result["rows"] == EXPECTED_ROWS
    assert result["batches"] == EXPECTED_BATCHES
    assert sink.committer.pending == 0


def test_merge_result_adds_profiler_stats() -> None:
    result = {"rows": 100, "documents": 100, "batches": 4, "document_ids": ["a"]}
    stats = ProfileStats(
        label="test",
        start_ts=1.0,
        end_ts=3.0,
        duration_seconds=2.0,
        peak_rss_bytes=123,
        cpu_percent=12.34,
    )

    merged = _merge_result(result, stats)

    assert merged["duration_seconds"] == EXPECTED_DURATION
    assert merged["throughput_rows_per_sec"] == EXPECTED_THROUGHPUT
    assert merged["peak_rss_bytes"] == 123
    assert merged["cpu_percent"] == EXPECTED_CPU
    assert "document_ids" not in merged
