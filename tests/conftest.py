"""
Pytest configuration for the Firestore sink.

Provides fixtures for:
- Settings built without reading the environment or a .env file
- A record schema covering every supported type
- An in-memory store client that records committed batches
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pytest

from firestore_sink.config import Settings, get_settings
from firestore_sink.domain.schema import Schema, parse_schema
from firestore_sink.writers.abstract import BatchEntry

SAMPLE_SCHEMA: Dict[str, Any] = {
    "type": "record",
    "name": "event",
    "fields": [
        {"name": "id", "type": "string"},
        {"name": "name", "type": "string"},
        {"name": "count", "type": "int"},
        {"name": "ts", "type": {"type": "long", "logicalType": "timestamp-micros"}},
        {"name": "note", "type": ["null", "string"]},
        {"name": "payload", "type": "bytes"},
        {"name": "tags", "type": {"type": "array", "items": "string"}},
        {
            "name": "source",
            "type": {
                "type": "record",
                "name": "source",
                "fields": [{"name": "n", "type": "long"}],
            },
        },
    ],
}


class FakeStore:
    """
    Store client that keeps every committed batch in memory.

    Auto-generated ids are `auto-1`, `auto-2`, ... in commit order. Set
    `fail_on_batch` to make that (1-based) commit raise `error`.
    """

    name = "fake"

    def __init__(self, fail_on_batch: Optional[int] = None, error: Optional[Exception] = None) -> None:
        self.batches: List[List[BatchEntry]] = []
        self.commit_calls = 0
        self.closed = False
        self.fail_on_batch = fail_on_batch
        self.error = error or RuntimeError("store unavailable")
        self._auto_counter = 0

    def commit_batch(self, entries: Sequence[BatchEntry]) -> List[str]:
        self.commit_calls += 1
        if self.fail_on_batch == self.commit_calls:
            raise self.error
        self.batches.append(list(entries))
        ids = []
        for entry in entries:
            if entry.document.id is None:
                self._auto_counter += 1
                ids.append(f"auto-{self._auto_counter}")
            else:
                ids.append(entry.document.id)
        return ids

    def close(self) -> None:
        self.closed = True

    @property
    def documents(self) -> list:
        return [entry.document for batch in self.batches for entry in batch]


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def make_fake_store():
    """Factory for FakeStore instances with failure injection."""
    return FakeStore


@pytest.fixture
def test_settings() -> Settings:
    """
    Settings fixture isolated from the environment.

    Use `model_copy(update=...)` for per-test variants.
    """
    return Settings(
        _env_file=None,
        project="test-project",
        database_name="(default)",
        collection="events",
        id_type="Auto-generated id",
        id_alias=None,
        batch_size=2,
        commit_max_attempts=1,
        service_account_type="filePath",
        service_account_file_path="auto-detect",
        service_account_json=None,
        log_level="DEBUG",
    )


@pytest.fixture
def sample_schema() -> Schema:
    return parse_schema(SAMPLE_SCHEMA)


@pytest.fixture
def sample_schema_path(tmp_path: Path) -> Path:
    path = tmp_path / "schema.json"
    path.write_text(json.dumps(SAMPLE_SCHEMA), encoding="utf-8")
    return path


@pytest.fixture
def sample_records() -> List[Dict[str, Any]]:
    return [
        {
            "id": f"doc-{i}",
            "name": f"name-{i}",
            "count": i,
            "ts": 1_700_000_000_000_000 + i,
            "note": None if i % 2 else "even",
            "payload": "aGVsbG8=",
            "tags": ["a", "b"][: i % 3],
            "source": {"n": i},
        }
        for i in range(3)
    ]


@pytest.fixture
def sample_records_path(tmp_path: Path, sample_records: List[Dict[str, Any]]) -> Path:
    path = tmp_path / "records.jsonl"
    with path.open("w", encoding="utf-8") as f:
        for record in sample_records:
            f.write(json.dumps(record) + "\n")
    return path


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Settings are lru_cached; keep env changes from leaking between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
