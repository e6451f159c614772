from __future__ import annotations

import pytest

from firestore_sink.domain.models import Document, IdType
from firestore_sink.exceptions import CommitError, TransformError
from firestore_sink.writers.abstract import StoreClient
from firestore_sink.writers.batch_committer import MAX_BATCH_SIZE, BatchCommitter

BATCH_SIZE = 2


def _docs(count: int, with_ids: bool = False) -> list:
    return [
        Document(data={"n": i}, id=f"doc-{i}" if with_ids else None)
        for i in range(count)
    ]


def test_fake_store_satisfies_protocol(fake_store) -> None:
    assert isinstance(fake_store, StoreClient)


def test_three_documents_with_max_two_commit_twice(fake_store) -> None:
    committer = BatchCommitter(fake_store, batch_size=BATCH_SIZE, id_type=IdType.AUTO_GENERATED)

    for doc in _docs(3):
        committer.add(doc)
    committer.flush()

    assert [len(b) for b in fake_store.batches] == [2, 1]
    assert committer.batches_committed == 2
    assert committer.documents_committed == 3


def test_full_batch_is_flushed_before_next_add(fake_store) -> None:
    committer = BatchCommitter(fake_store, batch_size=BATCH_SIZE, id_type=IdType.AUTO_GENERATED)
    first, second, third = _docs(3)

    assert committer.add(first) is None
    assert committer.add(second) is None
    assert committer.is_full
    assert fake_store.commit_calls == 0

    result = committer.add(third)

    assert result is not None
    assert result["batch"] == 1
    assert result["documents"] == 2
    assert result["auto_generated"] == 2
    assert committer.pending == 1


def test_flush_on_empty_batch_does_nothing(fake_store) -> None:
    committer = BatchCommitter(fake_store, batch_size=BATCH_SIZE, id_type=IdType.AUTO_GENERATED)

    assert committer.flush() is None
    assert fake_store.commit_calls == 0


def test_batch_preserves_insertion_order(fake_store) -> None:
    committer = BatchCommitter(fake_store, batch_size=10, id_type=IdType.CUSTOM)

    for doc in _docs(4, with_ids=True):
        committer.add(doc)
    result = committer.flush()

    assert [e.document.id for e in fake_store.batches[0]] == ["doc-0", "doc-1", "doc-2", "doc-3"]
    assert result["document_ids"] == ["doc-0", "doc-1", "doc-2", "doc-3"]
    assert result["auto_generated"] == 0


def test_store_assigned_ids_are_collected(fake_store) -> None:
    committer = BatchCommitter(fake_store, batch_size=BATCH_SIZE, id_type=IdType.AUTO_GENERATED)

    for doc in _docs(3):
        committer.add(doc)
    committer.flush()

    assert committer.document_ids == ["auto-1", "auto-2", "auto-3"]


def test_failed_commit_raises_once_with_every_entry(make_fake_store) -> None:
    error = RuntimeError("deadline exceeded")
    store = make_fake_store(fail_on_batch=1, error=error)
    committer = BatchCommitter(store, batch_size=BATCH_SIZE, id_type=IdType.AUTO_GENERATED)
    first, second, third = _docs(3)
    committer.add(first)
    committer.add(second)

    with pytest.raises(CommitError) as exc_info:
        committer.add(third)

    assert [e.document for e in exc_info.value.entries] == [first, second]
    assert exc_info.value.cause is error
    assert committer.pending == 0
    assert committer.batches_committed == 0


def test_committer_is_usable_after_a_failed_batch(make_fake_store) -> None:
    store = make_fake_store(fail_on_batch=1)
    committer = BatchCommitter(store, batch_size=BATCH_SIZE, id_type=IdType.AUTO_GENERATED)
    committer.add(Document(data={"n": 0}))
    with pytest.raises(CommitError):
        committer.flush()

    committer.add(Document(data={"n": 1}))
    committer.flush()

    assert [[e.document.data for e in b] for b in store.batches] == [[{"n": 1}]]


def test_commit_error_lists_custom_ids(make_fake_store) -> None:
    store = make_fake_store(fail_on_batch=1)
    committer = BatchCommitter(store, batch_size=BATCH_SIZE, id_type=IdType.CUSTOM)
    for doc in _docs(2, with_ids=True):
        committer.add(doc)

    with pytest.raises(CommitError) as exc_info:
        committer.flush()

    assert exc_info.value.document_ids == ["doc-0", "doc-1"]


def test_custom_mode_rejects_document_without_id(fake_store) -> None:
    committer = BatchCommitter(fake_store, batch_size=BATCH_SIZE, id_type=IdType.CUSTOM)

    with pytest.raises(TransformError):
        committer.add(Document(data={"n": 1}))
    assert committer.pending == 0


@pytest.mark.parametrize("batch_size", [0, MAX_BATCH_SIZE + 1])
def test_batch_size_must_be_within_store_limit(fake_store, batch_size: int) -> None:
    with pytest.raises(ValueError):
        BatchCommitter(fake_store, batch_size=batch_size, id_type=IdType.AUTO_GENERATED)
