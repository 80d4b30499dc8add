from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO


class StorageError(RuntimeError):
    pass


@dataclass(frozen=True)
class ObjectSummary:
    key: str
    size: int


class ObjectStore(ABC):
    @abstractmethod
    def bucket_exists(self, bucket: str) -> bool:
        """Return False when the provider reports the bucket as absent."""

    @abstractmethod
    def create_bucket(self, bucket: str, region: str) -> None:
        ...

    @abstractmethod
    def list_objects(self, bucket: str) -> list[ObjectSummary]:
        """Return the first page of object summaries."""

    @abstractmethod
    def put_object(self, bucket: str, key: str, stream: BinaryIO) -> None:
        """Write the stream to key, replacing any existing object."""

    @abstractmethod
    def delete_object(self, bucket: str, key: str) -> None:
        """Delete key; a missing key is not an error."""

    @abstractmethod
    def object_exists(self, bucket: str, key: str) -> bool:
        ...

    @abstractmethod
    def presigned_get_url(self, bucket: str, key: str, ttl_seconds: int) -> str:
        ...
