"""
Integration tests for the Firestore sink.

These tests write to a Firestore emulator and read the documents back to
verify that:
1. Auto-generated and custom ids land where the sink reports them
2. Values arrive with their Firestore types (timestamps, bytes, nested maps)
3. Batches respect the configured size

Run with:
    gcloud emulators firestore start --host-port=localhost:8080
    FIRESTORE_EMULATOR_HOST=localhost:8080 RUN_INTEGRATION_TESTS=1 pytest tests/integration/
"""

from __future__ import annotations

import os
import uuid
from datetime import datetime

import pytest
from google.cloud import firestore

from firestore_sink.infrastructure.firestore_store import FirestoreStore
from firestore_sink.sink import FirestoreSink

EMULATOR_PROJECT = "demo-firestore-sink"

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS", "0") != "1" or not os.getenv("FIRESTORE_EMULATOR_HOST"),
    reason="Integration tests require RUN_INTEGRATION_TESTS=1 and FIRESTORE_EMULATOR_HOST",
)


@pytest.fixture
def client():
    c = firestore.Client(project=EMULATOR_PROJECT)
    yield c
    c.close()


@pytest.fixture
def collection() -> str:
    return f"it-{uuid.uuid4().hex[:12]}"


def _sink(settings, schema, client, collection) -> FirestoreSink:
    store = FirestoreStore(client, collection=collection)
    return FirestoreSink.from_settings(settings, schema, store=store)


class TestFirestoreEmulator:
    """Round trips through a real Firestore API."""

    def test_custom_ids_are_written_and_readable(
        self, client, collection, test_settings, sample_schema, sample_records
    ):
        settings = test_settings.model_copy(
            update={"id_type": "Custom name", "id_alias": "id", "collection": collection}
        )
        sink = _sink(settings, sample_schema, client, collection)

        result = sink.write(sample_records)

        assert result["documents"] == len(sample_records)
        snapshot = client.collection(collection).document("doc-0").get()
        assert snapshot.exists
        data = snapshot.to_dict()
        assert "id" not in data
        assert data["name"] == "name-0"
        assert data["source"] == {"n": 0}
        assert isinstance(data["ts"], datetime)

    def test_auto_ids_match_stored_documents(
        self, client, collection, test_settings, sample_schema, sample_records
    ):
        sink = _sink(test_settings, sample_schema, client, collection)

        result = sink.write(sample_records)

        stored = {doc.id for doc in client.collection(collection).stream()}
        assert stored == set(result["document_ids"])
        assert result["batches"] == 2

    def test_rewriting_a_custom_id_replaces_the_document(
        self, client, collection, test_settings, sample_schema, sample_records
    ):
        settings = test_settings.model_copy(update={"id_type": "Custom name", "id_alias": "id"})
        first = dict(sample_records[0], name="before")
        second = dict(sample_records[0], name="after", note=None)

        _sink(settings, sample_schema, client, collection).write([first])
        _sink(settings, sample_schema, client, collection).write([second])

        data = client.collection(collection).document("doc-0").get().to_dict()
        assert data["name"] == "after"
        assert data["note"] is None
