from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from .errors import FetchError
from .preview import decode_payload


@dataclass(frozen=True)
class BucketInfo:
    name: str
    creation_date: Optional[datetime] = None
    region: Optional[str] = None


@dataclass(frozen=True)
class ObjectInfo:
    key: str
    size: int
    last_modified: Optional[datetime]
    storage_class: Optional[str]


class S3Service:
    def __init__(
        self,
        profile: Optional[str] = None,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
    ) -> None:
        self.profile = None if profile in (None, "", "default") else profile
        self._region = region
        self._endpoint_url = endpoint_url
        self._clients: dict[str, object] = {}

    def _profile_key(self, profile: Optional[str]) -> str:
        return profile or "__default__"

    def _client(self):
        key = self._profile_key(self.profile)
        if key in self._clients:
            return self._clients[key]
        kwargs: dict[str, str] = {}
        if self._region:
            kwargs["region_name"] = self._region
        if self._endpoint_url:
            kwargs["endpoint_url"] = self._endpoint_url
        try:
            if self.profile is None:
                session = boto3.session.Session()
            else:
                session = boto3.session.Session(profile_name=self.profile)
            client = session.client("s3", **kwargs)
        except BotoCoreError as exc:
            logger.warning("Creating S3 client failed: {}", exc)
            raise FetchError(f"Creating S3 client failed: {exc}") from exc
        self._clients[key] = client
        return client

    def _call(self, description: str, operation, **kwargs):
        try:
            return operation(**kwargs)
        except (BotoCoreError, ClientError) as exc:
            logger.warning("{} failed: {}", description, exc)
            raise FetchError(f"{description} failed: {exc}") from exc

    async def list_buckets_page(
        self,
        continuation_token: Optional[str],
        query_filter: Optional[str],
        page_size: int,
    ) -> tuple[list[BucketInfo], Optional[str]]:
        return await asyncio.to_thread(
            self._list_buckets_page, continuation_token, query_filter, page_size
        )

    def _list_buckets_page(
        self,
        continuation_token: Optional[str],
        query_filter: Optional[str],
        page_size: int,
    ) -> tuple[list[BucketInfo], Optional[str]]:
        client = self._client()
        kwargs: dict[str, object] = {"MaxBuckets": page_size}
        if continuation_token:
            kwargs["ContinuationToken"] = continuation_token
        if query_filter:
            kwargs["Prefix"] = query_filter
        response = self._call("Listing buckets", client.list_buckets, **kwargs)
        buckets: list[BucketInfo] = []
        for entry in response.get("Buckets", []):
            name = entry.get("Name")
            if not name:
                continue
            buckets.append(
                BucketInfo(
                    name=name,
                    creation_date=entry.get("CreationDate"),
                    region=entry.get("BucketRegion"),
                )
            )
        return buckets, response.get("ContinuationToken") or None

    async def list_objects_page(
        self,
        bucket: str,
        continuation_token: Optional[str],
        prefix: Optional[str],
        page_size: int,
    ) -> tuple[list[ObjectInfo], Optional[str]]:
        return await asyncio.to_thread(
            self._list_objects_page, bucket, continuation_token, prefix, page_size
        )

    def _list_objects_page(
        self,
        bucket: str,
        continuation_token: Optional[str],
        prefix: Optional[str],
        page_size: int,
    ) -> tuple[list[ObjectInfo], Optional[str]]:
        client = self._client()
        kwargs: dict[str, object] = {"Bucket": bucket, "MaxKeys": page_size}
        if continuation_token:
            kwargs["ContinuationToken"] = continuation_token
        if prefix:
            kwargs["Prefix"] = prefix
        response = self._call(
            f"Listing objects in {bucket}", client.list_objects_v2, **kwargs
        )
        objects: list[ObjectInfo] = []
        for entry in response.get("Contents", []):
            key = entry.get("Key")
            if not key:
                continue
            objects.append(
                ObjectInfo(
                    key=key,
                    size=int(entry.get("Size", 0)),
                    last_modified=entry.get("LastModified"),
                    storage_class=entry.get("StorageClass"),
                )
            )
        next_token = None
        if response.get("IsTruncated"):
            next_token = response.get("NextContinuationToken") or None
        return objects, next_token

    async def get_object_content(
        self, bucket: str, key: str, max_bytes: Optional[int] = None
    ) -> tuple[str, Optional[str]]:
        return await asyncio.to_thread(
            self._get_object_content, bucket, key, max_bytes
        )

    def _get_object_content(
        self, bucket: str, key: str, max_bytes: Optional[int]
    ) -> tuple[str, Optional[str]]:
        data, content_type, truncated = self._read_object(bucket, key, max_bytes)
        return decode_payload(data, truncated=truncated), content_type

    async def download_object_bytes(self, bucket: str, key: str) -> bytes:
        return await asyncio.to_thread(self._download_object_bytes, bucket, key)

    def _download_object_bytes(self, bucket: str, key: str) -> bytes:
        data, _content_type, _truncated = self._read_object(bucket, key, None)
        return data

    def _read_object(
        self, bucket: str, key: str, max_bytes: Optional[int]
    ) -> tuple[bytes, Optional[str], bool]:
        client = self._client()
        kwargs: dict[str, object] = {"Bucket": bucket, "Key": key}
        description = f"Fetching s3://{bucket}/{key}"
        if max_bytes:
            try:
                response = client.get_object(
                    Range=f"bytes=0-{max_bytes - 1}", **kwargs
                )
            except ClientError as exc:
                # Empty objects reject any byte range.
                if exc.response.get("Error", {}).get("Code") != "InvalidRange":
                    logger.warning("{} failed: {}", description, exc)
                    raise FetchError(f"{description} failed: {exc}") from exc
                response = self._call(description, client.get_object, **kwargs)
            except BotoCoreError as exc:
                logger.warning("{} failed: {}", description, exc)
                raise FetchError(f"{description} failed: {exc}") from exc
        else:
            response = self._call(description, client.get_object, **kwargs)
        content_type = response.get("ContentType") or None
        body = response.get("Body")
        if body is None:
            return b"", content_type, False
        try:
            data = body.read()
        except (BotoCoreError, OSError) as exc:
            raise FetchError(f"Reading s3://{bucket}/{key} failed: {exc}") from exc
        finally:
            body.close()
        truncated = False
        content_range = response.get("ContentRange")
        if content_range:
            # Expected: "bytes start-end/total"
            parts = content_range.split("/")
            if len(parts) == 2 and parts[1].isdigit():
                truncated = len(data) < int(parts[1])
        return data, content_type, truncated
