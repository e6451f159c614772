"""
Infrastructure package for the Firestore sink.

Centralizes Firestore connectivity (credentials, client lifecycle) and the
store client that commits batches. Keep this layer focused on I/O, decoupled
from the transformation core.
"""

from firestore_sink.infrastructure.firestore_factory import (
    ClientManager,
    check_connection,
    create_client,
    get_client,
)
from firestore_sink.infrastructure.firestore_store import FirestoreStore

__all__ = [
    "ClientManager",
    "check_connection",
    "create_client",
    "get_client",
    "FirestoreStore",
]
