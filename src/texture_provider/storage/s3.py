"""S3-compatible object storage backend."""

import logging
import mimetypes
from typing import Any

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from texture_provider.core.exceptions import BackendUnavailableError, MisconfiguredError, NotFoundError
from texture_provider.storage.backend import StorageBackend
from texture_provider.utils.hash_utils import is_valid_digest

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"
_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


class S3StorageBackend(StorageBackend):
    """
    Stores blobs as ``<digest>.<extension>`` objects in one bucket.

    A client is opened per operation from a shared aioboto3 session. Static
    credentials are used only when both keys are configured; otherwise the
    ambient AWS credential chain applies.
    """

    name = "s3"

    def __init__(
        self,
        bucket: str | None,
        region: str | None = None,
        endpoint: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        session: Any | None = None,
    ):
        if not bucket:
            raise MisconfiguredError("S3_BUCKET must be set for S3 storage")
        self.bucket = bucket
        self.region = region or DEFAULT_REGION
        self.endpoint = endpoint.rstrip("/") if endpoint else None
        self._credentials = (access_key, secret_key) if access_key and secret_key else None
        self._session = session if session is not None else aioboto3.Session()

    def _client(self) -> Any:
        kwargs: dict[str, Any] = {"region_name": self.region}
        if self.endpoint:
            kwargs["endpoint_url"] = self.endpoint
        if self._credentials:
            kwargs["aws_access_key_id"], kwargs["aws_secret_access_key"] = self._credentials
        return self._session.client("s3", **kwargs)

    def get_object_key(self, digest: str, extension: str) -> str:
        if not is_valid_digest(digest):
            raise ValueError(f"Invalid digest for object key: {digest!r}")
        return f"{digest}.{extension}"

    async def store_file(self, data: bytes, digest: str, extension: str) -> str:
        key = self.get_object_key(digest, extension)
        content_type = mimetypes.types_map.get(f".{extension}", "application/octet-stream")
        try:
            async with self._client() as s3:
                await s3.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            raise BackendUnavailableError(f"Failed to upload {key}", backend=self.name, original_exception=e) from e

        logger.info("Uploaded %d bytes to s3://%s/%s", len(data), self.bucket, key)
        return self.generate_url(digest, extension)

    async def get_file(self, digest: str, extension: str) -> bytes:
        try:
            key = self.get_object_key(digest, extension)
        except ValueError:
            raise NotFoundError(f"No object stored for {digest!r}") from None

        try:
            async with self._client() as s3:
                response = await s3.get_object(Bucket=self.bucket, Key=key)
                async with response["Body"] as stream:
                    return await stream.read()
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _NOT_FOUND_CODES:
                raise NotFoundError(f"No object stored at s3://{self.bucket}/{key}") from None
            raise BackendUnavailableError(f"Failed to download {key}", backend=self.name, original_exception=e) from e
        except BotoCoreError as e:
            raise BackendUnavailableError(f"Failed to download {key}", backend=self.name, original_exception=e) from e

    def generate_url(self, digest: str, extension: str) -> str:
        key = f"{digest}.{extension}"
        if self.endpoint:
            return f"{self.endpoint}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"
