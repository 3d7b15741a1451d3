"""Direct object API - the "put/get bytes at key" capability."""

import asyncio
from abc import ABC, abstractmethod
from typing import Dict, Optional, Union

import boto3
from botocore.exceptions import ClientError

from ...config import Settings

MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


class ObjectStore(ABC):
    @abstractmethod
    async def put(
        self,
        key: str,
        body: Union[bytes, str],
        content_type: str = "application/octet-stream",
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Return the object body, or None when the key does not exist."""
        pass


class S3ObjectStore(ObjectStore):
    """S3-compatible bucket accessed through boto3; blocking calls run in a worker thread."""

    def __init__(self, bucket_name: str, client):
        self._bucket_name = bucket_name
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3ObjectStore":
        kwargs = {}
        endpoint = settings.object_store_endpoint
        if endpoint:
            # S3-compatible providers take "auto"; AWS resolves its own region
            kwargs["endpoint_url"] = endpoint
            kwargs["region_name"] = "auto"
        if settings.explicit_credentials:
            access_key_id, secret_access_key = settings.explicit_credentials
            kwargs["aws_access_key_id"] = access_key_id
            kwargs["aws_secret_access_key"] = secret_access_key
        return cls(settings.storage_bucket_name, boto3.client("s3", **kwargs))

    async def put(
        self,
        key: str,
        body: Union[bytes, str],
        content_type: str = "application/octet-stream",
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        if isinstance(body, str):
            body = body.encode("utf-8")
        await asyncio.to_thread(
            self._client.put_object,
            Bucket=self._bucket_name,
            Key=key,
            Body=body,
            ContentType=content_type,
            Metadata=metadata or {},
        )

    async def get(self, key: str) -> Optional[bytes]:
        def _read() -> Optional[bytes]:
            try:
                response = self._client.get_object(Bucket=self._bucket_name, Key=key)
            except ClientError as e:
                if e.response.get("Error", {}).get("Code") in MISSING_KEY_CODES:
                    return None
                raise
            return response["Body"].read()

        return await asyncio.to_thread(_read)


def resolve_object_store(settings: Settings) -> Optional[ObjectStore]:
    """
    Build the object store used by the binding backup and restore.

    Independent of the mount configuration: without an account id the client
    uses the override endpoint or boto3's default. Returns None only when there
    is no bucket or no credentials can be resolved at all.
    """
    if not settings.storage_bucket_name:
        return None
    if not settings.has_explicit_credentials and boto3.Session().get_credentials() is None:
        return None
    return S3ObjectStore.from_settings(settings)
