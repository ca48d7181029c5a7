"""LocalFileStorage — object storage backed by a directory on disk."""

import logging
from pathlib import Path, PurePosixPath
from typing import Optional

from domain.errors import StorageError
from ports.storage import ObjectStoragePort, StoredObject

logger = logging.getLogger(__name__)


class LocalFileStorage(ObjectStoragePort):
    def __init__(self, root: str, base_url: Optional[str] = None):
        self._root = Path(root).resolve()
        self._base_url = base_url.rstrip("/") if base_url else None

    def put(self, data: bytes, key: str, content_type: str) -> StoredObject:
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            logger.error(f"Could not store {key}: {e}")
            raise StorageError(f"Could not store {key}: {e}") from e

        logger.info(f"Stored {key} ({len(data)} bytes, {content_type})")
        return StoredObject(key=key, url=self._url_for(key, path), content_type=content_type, size=len(data))

    def get(self, key: str) -> bytes:
        path = self._path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise StorageError(f"Object not found: {key}") from e
        except OSError as e:
            raise StorageError(f"Could not read {key}: {e}") from e

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Could not delete {key}: {e}") from e

    def is_available(self) -> bool:
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return True

    def _path_for(self, key: str) -> Path:
        parts = PurePosixPath(key).parts
        if not key or key.startswith("/") or ".." in parts:
            raise StorageError(f"Invalid object key: {key!r}")
        return self._root.joinpath(*parts)

    def _url_for(self, key: str, path: Path) -> str:
        if self._base_url:
            return f"{self._base_url}/{key}"
        return path.as_uri()
