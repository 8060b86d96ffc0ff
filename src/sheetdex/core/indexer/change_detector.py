import hashlib
import logging
from pathlib import Path

from ..constants import HASH_CHUNK_BYTES
from ..errors import FileAccessError

logger = logging.getLogger("sheetdex.change_detector")


def compute_fingerprint(path) -> str:
    """MD5 hex digest of the file bytes (change detection only, not security)."""
    digest = hashlib.md5(usedforsecurity=False)
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(HASH_CHUNK_BYTES), b""):
                digest.update(chunk)
    except OSError as e:
        raise FileAccessError(f"cannot fingerprint file: {e}", path=str(path)) from e
    return digest.hexdigest()


class ChangeDetector:
    def __init__(self, store):
        self.store = store

    def needs_import(self, path) -> bool:
        key = str(Path(path))
        stored = self.store.get_fingerprint(key)
        if stored is None:
            return True
        try:
            current = compute_fingerprint(path)
        except FileAccessError as e:
            # Fail open: let the importer surface the real error.
            logger.warning("Fingerprint failed, treating as changed: %s", e)
            return True
        return current != stored
