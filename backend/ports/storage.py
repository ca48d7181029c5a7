"""ObjectStoragePort — abstract interface for storing uploaded media."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class StoredObject:
    key: str
    url: str
    content_type: str
    size: int


class ObjectStoragePort(ABC):
    @abstractmethod
    def put(self, data: bytes, key: str, content_type: str) -> StoredObject:
        """Store bytes under a key. Returns a reference to the stored object."""

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Return the bytes stored under a key."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the object stored under a key, if any."""

    def is_available(self) -> bool:
        return True
