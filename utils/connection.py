"""
Connection profile storage and per-connection client management.

The store is the authoritative table of saved connections. Every mutation
re-persists the whole table with passwords encrypted; a failed write is
reported as a warning and never undoes the in-memory change.
"""

import json
import logging
import os
import tempfile
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from config.environments import get_storage_config
from mcp_types.connections import ConnectionProfile, PersistedSecureProfile
from utils.crypto import CredentialCipher, CredentialError
from utils.errors import ElasticOperationError, ErrorDetails
from utils.transport import TransportClient


logger = logging.getLogger(__name__)


class ConnectionStoreError(Exception):
    """The persisted connection file cannot be read as a whole."""


class ConnectionStore:
    """
    Thread-safe table of connection profiles with encrypted persistence.

    A single lock guards the table and is held across the disk write, so two
    mutations never interleave and readers never see a half-applied change.
    """

    def __init__(self, storage_path: Union[str, Path], cipher: CredentialCipher):
        self._path = Path(storage_path)
        self._cipher = cipher
        self._lock = threading.Lock()
        self._profiles: Dict[str, ConnectionProfile] = {}
        self.last_save_error: Optional[str] = None

    @property
    def storage_path(self) -> Path:
        return self._path

    def __len__(self) -> int:
        with self._lock:
            return len(self._profiles)

    def add(self, profile: ConnectionProfile) -> str:
        """
        Insert or replace a profile and persist the table.

        Args:
            profile: Profile to store; an empty id is replaced by a new uuid

        Returns:
            The profile id
        """
        if not profile.id:
            profile = profile.with_id(str(uuid.uuid4()))
        else:
            profile = profile.snapshot()

        with self._lock:
            self._profiles[profile.id] = profile
            self._persist_locked()

        logger.info("Saved connection '%s' (%s)", profile.name, profile.id)
        return profile.id

    def remove(self, profile_id: str) -> bool:
        """
        Delete a profile and persist the reduced table.

        Returns:
            True if the profile existed
        """
        with self._lock:
            if profile_id not in self._profiles:
                return False
            del self._profiles[profile_id]
            self._persist_locked()

        logger.info("Removed connection %s", profile_id)
        return True

    def get(self, profile_id: str) -> Optional[ConnectionProfile]:
        with self._lock:
            profile = self._profiles.get(profile_id)
            return profile.snapshot() if profile else None

    def list(self) -> List[ConnectionProfile]:
        with self._lock:
            profiles = [profile.snapshot() for profile in self._profiles.values()]
        return sorted(profiles, key=lambda p: (p.name.lower(), p.id))

    def load(self) -> int:
        """
        Replace the table with the persisted profiles.

        A record whose password cannot be decrypted, or that is missing
        required keys, is skipped; the others still load.

        Returns:
            Number of profiles loaded

        Raises:
            ConnectionStoreError: If the file is unreadable or not a JSON array
        """
        with self._lock:
            records = self._read_records_locked()
            loaded: Dict[str, ConnectionProfile] = {}

            for position, record in enumerate(records, start=1):
                profile = self._decode_record(position, record)
                if profile is not None:
                    loaded[profile.id] = profile

            self._profiles = loaded

        logger.info("Loaded %d of %d saved connections", len(loaded), len(records))
        return len(loaded)

    def save(self) -> bool:
        """Persist the current table; returns False (and logs) on failure."""
        with self._lock:
            return self._persist_locked()

    # ---------- internals (caller holds the lock) ----------

    def _read_records_locked(self) -> List[Any]:
        if not self._path.exists():
            return []

        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConnectionStoreError(f"Cannot read {self._path}: {e.strerror or e}") from e

        if not text.strip():
            return []

        try:
            records = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConnectionStoreError(f"Corrupt connection file {self._path}: {e}") from e

        if not isinstance(records, list):
            raise ConnectionStoreError(f"Corrupt connection file {self._path}: expected a JSON array")
        return records

    def _decode_record(self, position: int, record: Any) -> Optional[ConnectionProfile]:
        try:
            stored = PersistedSecureProfile.from_dict(record)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Skipping malformed connection record %d: %s", position, e)
            return None

        password = None
        if stored.encrypted_password is not None:
            try:
                password = self._cipher.decrypt_secret(stored.encrypted_password)
            except CredentialError as e:
                logger.error(
                    "Failed to decrypt password for connection '%s' (%s): %s",
                    stored.name, stored.id, type(e).__name__,
                )
                return None

        return ConnectionProfile(
            id=stored.id,
            name=stored.name,
            url=stored.url,
            username=stored.username,
            password=password,
            headers=stored.headers,
        )

    def _encode_profile(self, profile: ConnectionProfile) -> Dict[str, Any]:
        encrypted = self._cipher.encrypt(profile.password) if profile.password else None
        return PersistedSecureProfile(
            id=profile.id,
            name=profile.name,
            url=profile.url,
            username=profile.username,
            encrypted_password=encrypted,
            headers=dict(profile.headers),
        ).to_dict()

    def _persist_locked(self) -> bool:
        try:
            records = [self._encode_profile(profile) for profile in self._profiles.values()]
            self._write_atomic(json.dumps(records, ensure_ascii=False, indent=2))
        except (OSError, CredentialError) as e:
            self.last_save_error = f"Failed to save connections: {e}"
            logger.warning(self.last_save_error)
            return False

        self.last_save_error = None
        return True

    def _write_atomic(self, text: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=str(self._path.parent),
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
                handle.flush()
                os.fsync(handle.fileno())
            if os.name == "posix":
                os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self._path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise


# ========== PROCESS-WIDE REGISTRY ==========

_store: Optional[ConnectionStore] = None
_store_lock = threading.Lock()
_clients: Dict[str, TransportClient] = {}
_clients_lock = threading.Lock()


def get_connection_store() -> ConnectionStore:
    """
    Get or create the process-wide connection store.

    The store is built from the configured data directory and loaded once.
    A corrupt connection file is logged and the store starts empty.

    Returns:
        The shared ConnectionStore
    """
    global _store

    with _store_lock:
        if _store is None:
            config = get_storage_config()
            cipher = CredentialCipher.from_key_file(config["key_file"])
            store = ConnectionStore(config["connections_file"], cipher)
            try:
                store.load()
            except ConnectionStoreError as e:
                logger.error("Failed to load connections: %s", e)
            _store = store
        return _store


def reset_connection_store() -> None:
    """Drop the shared store and cached clients."""
    global _store

    with _store_lock:
        _store = None
    with _clients_lock:
        for client in _clients.values():
            client.close()
        _clients.clear()


def get_transport_client(connection_id: str) -> TransportClient:
    """
    Get the client for a saved connection.

    Clients are cached and rebuilt when the stored profile changes.

    Args:
        connection_id: Saved connection id

    Returns:
        TransportClient bound to the current profile

    Raises:
        ElasticOperationError: If no such connection exists
    """
    profile = get_connection_store().get(connection_id)

    with _clients_lock:
        cached = _clients.get(connection_id)
        if profile is None:
            if cached is not None:
                cached.close()
                del _clients[connection_id]
            raise ElasticOperationError(ErrorDetails.connection_not_found(connection_id))

        if cached is not None and cached.profile == profile:
            return cached
        if cached is not None:
            cached.close()

        client = TransportClient(profile)
        _clients[connection_id] = client
        return client
