"""The content-addressed storage interface."""

from abc import ABC, abstractmethod

from texture_provider.utils import hash_utils


class StorageBackend(ABC):
    """
    A durable blob store keyed by content digest.

    Writes are idempotent: storing the same digest twice overwrites the blob
    with identical bytes. Implementations hold only read-only configuration and
    shared client handles, so one instance serves every request concurrently.
    """

    name: str = "storage"

    @abstractmethod
    async def store_file(self, data: bytes, digest: str, extension: str) -> str:
        """
        Persist a blob under its digest.

        Returns:
            The URL of the stored blob, equal to ``generate_url(digest, extension)``.

        Raises:
            BackendUnavailableError: If the blob could not be written.

        """

    @abstractmethod
    async def get_file(self, digest: str, extension: str) -> bytes:
        """
        Read a blob back.

        Raises:
            NotFoundError: If no blob exists under the digest.
            BackendUnavailableError: On transport or credential failures.

        """

    @abstractmethod
    def generate_url(self, digest: str, extension: str) -> str:
        """Build the public URL of a blob. Performs no I/O."""

    def compute_digest(self, data: bytes) -> str:
        return hash_utils.compute_digest(data)
