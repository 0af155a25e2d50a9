"""
Session Persistence Layer

RESPONSIBILITY: Keep the serialized tracker state across process restarts
ALLOWED INPUTS: Opaque text blobs keyed by a single well-known key
OUTPUTS: The last saved blob, or None

WHAT THIS LAYER MUST NOT DO:
============================
- Parse or interpret blobs (the codec owns the format)
- Make decisions about tracker state
- Raise on a missing key: absence is a normal answer

BOUNDARY ENFORCEMENT:
=====================
- Backends expose load/save/clear only
- Corrupt or unreadable storage is reported as "no saved state"
"""

from __future__ import annotations
from typing import Dict, Optional
import json
import logging
import os
import tempfile


logger = logging.getLogger(__name__)

STORAGE_KEY = "cycle_tracker_state"


# =============================================================================
# STORAGE INTERFACE (Dependency Inversion)
# =============================================================================

class PersistenceBackend:
    """
    Abstract key-value persistence collaborator.

    Implementations can use different storage systems (memory, file)
    while keeping the same get/set/clear contract.
    """

    def load(self, key: str = STORAGE_KEY) -> Optional[str]:
        """Return the stored blob, or None if nothing usable is stored."""
        raise NotImplementedError

    def save(self, blob: str, key: str = STORAGE_KEY) -> None:
        """Replace the stored blob."""
        raise NotImplementedError

    def clear(self, key: str = STORAGE_KEY) -> None:
        """Forget the stored blob."""
        raise NotImplementedError


# =============================================================================
# IN-MEMORY BACKEND (Reference Implementation)
# =============================================================================

class InMemoryPersistence(PersistenceBackend):
    """
    Dictionary-backed persistence.
    Suitable for testing and for sessions that need no durability.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._blobs: Dict[str, str] = dict(initial or {})

    def load(self, key: str = STORAGE_KEY) -> Optional[str]:
        return self._blobs.get(key)

    def save(self, blob: str, key: str = STORAGE_KEY) -> None:
        self._blobs[key] = blob

    def clear(self, key: str = STORAGE_KEY) -> None:
        self._blobs.pop(key, None)


# =============================================================================
# FILE-BASED BACKEND
# =============================================================================

class FilePersistence(PersistenceBackend):
    """
    One JSON document per key inside a storage directory.

    Writes go through a temp file and an atomic rename so a crash never
    leaves a half-written blob behind.
    """

    def __init__(self, storage_dir: str):
        self._storage_dir = storage_dir
        os.makedirs(storage_dir, exist_ok=True)

    def _path(self, key: str) -> str:
        return os.path.join(self._storage_dir, f"{key}.json")

    def load(self, key: str = STORAGE_KEY) -> Optional[str]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", path, e)
            return None

        blob = document.get("blob") if isinstance(document, dict) else None
        if not isinstance(blob, str):
            logger.warning("Ignoring session file %s without a blob", path)
            return None
        return blob

    def save(self, blob: str, key: str = STORAGE_KEY) -> None:
        path = self._path(key)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self._storage_dir)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump({"key": key, "blob": blob}, f)
            os.replace(tmp_path, path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def clear(self, key: str = STORAGE_KEY) -> None:
        path = self._path(key)
        if os.path.exists(path):
            os.unlink(path)


__all__ = [
    'STORAGE_KEY',
    'PersistenceBackend',
    'InMemoryPersistence',
    'FilePersistence',
]
