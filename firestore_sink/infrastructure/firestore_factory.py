"""
Firestore client factory for the Firestore sink.

Resolves the project, database and service-account credentials from
Settings and builds `google.cloud.firestore.Client` instances. ClientManager
keeps one client per (project, database) for the whole process and closes
them on exit; the client is thread-safe, so workers share it.

Client creation retries transient transport failures (metadata server,
token endpoint) using tenacity.
"""

from __future__ import annotations

import atexit
import json
import threading
from typing import Dict, Optional, Tuple

import google.auth
from google.auth.credentials import Credentials
from google.auth.exceptions import TransportError
from google.cloud import firestore
from google.oauth2 import service_account
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from firestore_sink.config import AUTO_DETECT, Settings, get_settings
from firestore_sink.utils.logging import get_logger

log = get_logger(__name__)


def build_credentials(settings: Settings) -> Optional[Credentials]:
    """
    Build explicit credentials, or return None to use Application Default Credentials.

    Raises
    ------
    ValueError
        If JSON credentials are selected but missing or not valid JSON.
    """
    if settings.uses_service_account_json:
        if not settings.service_account_json:
            raise ValueError("Service account type is JSON but no service account JSON was provided.")
        try:
            info = json.loads(settings.service_account_json)
        except json.JSONDecodeError as exc:
            raise ValueError("Service account JSON is not valid JSON.") from exc
        return service_account.Credentials.from_service_account_info(info)

    path = settings.key_file_path
    if path:
        return service_account.Credentials.from_service_account_file(path)
    return None


def resolve_project(settings: Settings, credentials: Optional[Credentials] = None) -> str:
    """
    Return the configured project, falling back to the credentials and then the environment.
    """
    if settings.project and settings.project != AUTO_DETECT:
        return settings.project

    project_id = getattr(credentials, "project_id", None)
    if project_id:
        return project_id

    _, project_id = google.auth.default()
    if not project_id:
        raise ValueError(
            "Could not detect Google Cloud project id from the environment. Please specify a project id."
        )
    return project_id


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(TransportError),
    reraise=True,
)
def create_client(settings: Optional[Settings] = None) -> firestore.Client:
    """
    Create a dedicated Firestore client with automatic retry.

    Retries up to 3 times with exponential backoff when credentials cannot be
    fetched because of a transport failure.
    """
    settings = settings or get_settings()
    credentials = build_credentials(settings)
    project = resolve_project(settings, credentials)
    log.info(
        "Creating Firestore client",
        extra={"project": project, "database": settings.resolved_database},
    )
    return firestore.Client(
        project=project,
        credentials=credentials,
        database=settings.resolved_database,
    )


class ClientManager:
    """
    Thread-safe singleton caching Firestore clients.

    Clients are keyed by (project, database) and closed on interpreter exit.
    """

    _instance: Optional["ClientManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "ClientManager":
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._clients: Dict[Tuple[str, str], firestore.Client] = {}
                atexit.register(cls._instance.close_all)
            return cls._instance

    def get_client(self, settings: Optional[Settings] = None) -> firestore.Client:
        settings = settings or get_settings()
        key = (settings.project or AUTO_DETECT, settings.resolved_database)
        with self._lock:
            client = self._clients.get(key)
            if client is None:
                client = create_client(settings)
                self._clients[key] = client
            return client

    def close_all(self) -> None:
        """Close every cached client. Called automatically on exit."""
        with self._lock:
            for key, client in list(self._clients.items()):
                try:
                    client.close()
                except Exception as exc:  # noqa: BLE001 - best-effort cleanup at shutdown
                    log.warning("Failed to close Firestore client", extra={"client": str(key), "error": str(exc)})
            self._clients.clear()


def get_client(settings: Optional[Settings] = None) -> firestore.Client:
    """Get or create the shared Firestore client via ClientManager."""
    return ClientManager().get_client(settings)


def check_connection(settings: Optional[Settings] = None) -> None:
    """
    Build a throwaway client to prove project, credentials and database resolve.

    Raises whatever client construction raises.
    """
    client = create_client(settings)
    client.close()


__all__ = [
    "ClientManager",
    "build_credentials",
    "check_connection",
    "create_client",
    "get_client",
    "resolve_project",
]
