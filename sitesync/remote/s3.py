"""
S3 RemoteStore - boto3 client boundary.

This module is the single place sitesync talks to AWS:
- S3 for list/upload/redirect/delete
- CloudFront for cache invalidation

Error classification:
- botocore ClientError / BotoCoreError -> RemoteError
- Local OSError while reading an upload -> RemoteError
- Nothing is retried here beyond botocore's own transport retries

Uploads are skipped when the remote object already has the same
content (ETag == local MD5), the same content-type, cache-control,
content-encoding and metadata, and the same public-read exposure as the
resolved canned ACL.
"""

import hashlib
import logging
import time
from typing import TYPE_CHECKING, Any, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from sitesync.errors import RemoteError
from sitesync.upload_policy import UploadAttributes, UploadPolicy

from .base import RemoteStore

if TYPE_CHECKING:
    from sitesync.config import SyncConfig


logger = logging.getLogger(__name__)

REDIRECT_ACL = "public-read"
NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")
ALL_USERS_URI = "http://acs.amazonaws.com/groups/global/AllUsers"
PUBLIC_READ_ACLS = ("public-read", "public-read-write")


def _md5_hex(path: str, chunk_size: int = 8 * 1024 * 1024) -> str:
    md5 = hashlib.md5()
    with open(path, "rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            md5.update(chunk)
    return md5.hexdigest()


def _normalize_etag(etag: str) -> str:
    return (etag or "").strip().strip('"').lower()


def _grants_public_read(grants: list[dict[str, Any]]) -> bool:
    for grant in grants:
        grantee = grant.get("Grantee") or {}
        if grantee.get("URI") == ALL_USERS_URI and grant.get("Permission") in ("READ", "FULL_CONTROL"):
            return True
    return False


def build_boto_config(path_style: bool = False) -> BotoConfig:
    """
    Create a botocore Config with conservative timeouts.

    Retries are limited to botocore's transport layer; sitesync itself never retries a job.
    """
    kwargs: dict[str, Any] = {
        "connect_timeout": 5,
        "read_timeout": 60,
        "retries": {"max_attempts": 3, "mode": "standard"},
    }
    if path_style:
        kwargs["s3"] = {"addressing_style": "path"}
    return BotoConfig(**kwargs)


class S3RemoteStore(RemoteStore):
    """
    RemoteStore backed by an S3 bucket.

    Usage:
        store = S3RemoteStore.from_config(config)
        store.list("site/")

    In dry-run mode every mutating call is logged and skipped;
    list() still reads the bucket so the plan is accurate.
    """

    def __init__(
        self,
        client: Any,
        bucket: str,
        policy: Optional[UploadPolicy] = None,
        cloudfront_client: Any = None,
        distribution: Optional[str] = None,
        dry_run: bool = False,
    ):
        self._client = client
        self._bucket = bucket
        self._policy = policy or UploadPolicy()
        self._cloudfront = cloudfront_client
        self._distribution = distribution
        self._dry_run = dry_run

    @classmethod
    def from_config(cls, config: "SyncConfig") -> "S3RemoteStore":
        """
        Build S3 (and CloudFront, when a distribution is set) clients from config.

        Static keys are used when both access_key and secret_key are set;
        otherwise boto3's default credential chain applies.
        """
        session_kwargs: dict[str, Any] = {}
        if config.access_key and config.secret_key:
            session_kwargs["aws_access_key_id"] = config.access_key
            session_kwargs["aws_secret_access_key"] = config.secret_key
        if config.region:
            session_kwargs["region_name"] = config.region
        session = boto3.Session(**session_kwargs)

        client_kwargs: dict[str, Any] = {"config": build_boto_config(config.path_style)}
        if config.endpoint:
            client_kwargs["endpoint_url"] = config.endpoint
        client = session.client("s3", **client_kwargs)

        cloudfront = None
        if config.cloudfront_distribution:
            cloudfront = session.client("cloudfront", config=build_boto_config())

        return cls(
            client=client,
            bucket=config.bucket,
            policy=UploadPolicy(
                access=config.access,
                cache_control=config.cache_control,
                content_type=config.content_type,
                content_encoding=config.content_encoding,
                metadata=config.metadata,
            ),
            cloudfront_client=cloudfront,
            distribution=config.cloudfront_distribution,
            dry_run=config.dry_run,
        )

    @property
    def bucket(self) -> str:
        return self._bucket

    def list(self, prefix: str) -> list[str]:
        keys: list[str] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
                for obj in page.get("Contents", []) or []:
                    keys.append(obj["Key"])
        except (ClientError, BotoCoreError) as e:
            raise RemoteError("list", prefix, str(e)) from e
        return keys

    def upload(self, local_path: str, remote_key: str) -> None:
        attrs = self._policy.resolve(local_path, remote_key)
        try:
            checksum = _md5_hex(local_path)
        except OSError as e:
            raise RemoteError("upload", remote_key, str(e)) from e

        if self._is_unchanged(remote_key, checksum, attrs):
            logger.debug("%s unchanged, skipping upload", remote_key)
            return

        if self._dry_run:
            logger.info("[DRY-RUN] upload %s -> s3://%s/%s", local_path, self._bucket, remote_key)
            return

        try:
            with open(local_path, "rb") as body:
                self._client.put_object(
                    Bucket=self._bucket,
                    Key=remote_key,
                    Body=body,
                    **attrs.to_put_args(),
                )
        except OSError as e:
            raise RemoteError("upload", remote_key, str(e)) from e
        except (ClientError, BotoCoreError) as e:
            raise RemoteError("upload", remote_key, str(e)) from e

    def _is_unchanged(self, remote_key: str, checksum: str, attrs: UploadAttributes) -> bool:
        """Compare the remote object's ETag and headers against the pending upload."""
        try:
            head = self._client.head_object(Bucket=self._bucket, Key=remote_key)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in NOT_FOUND_CODES:
                return False
            raise RemoteError("upload", remote_key, str(e)) from e
        except BotoCoreError as e:
            raise RemoteError("upload", remote_key, str(e)) from e

        if _normalize_etag(head.get("ETag", "")) != checksum:
            return False
        if head.get("ContentType") != attrs.content_type:
            return False
        if head.get("CacheControl") != attrs.cache_control:
            return False
        if head.get("ContentEncoding") != attrs.content_encoding:
            return False
        remote_meta = {k.lower(): v for k, v in (head.get("Metadata") or {}).items()}
        local_meta = {k.lower(): v for k, v in attrs.metadata.items()}
        if remote_meta != local_meta:
            return False
        return self._acl_matches(remote_key, attrs.acl)

    def _acl_matches(self, remote_key: str, acl: str) -> bool:
        """Compare the AllUsers READ grant on the object with the canned ACL."""
        try:
            response = self._client.get_object_acl(Bucket=self._bucket, Key=remote_key)
        except (ClientError, BotoCoreError) as e:
            raise RemoteError("upload", remote_key, str(e)) from e
        return _grants_public_read(response.get("Grants") or []) == (acl in PUBLIC_READ_ACLS)

    def redirect(self, source_key: str, target: str) -> None:
        if self._dry_run:
            logger.info("[DRY-RUN] redirect s3://%s/%s -> %s", self._bucket, source_key, target)
            return
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=source_key,
                Body=b"",
                ACL=REDIRECT_ACL,
                WebsiteRedirectLocation=target,
            )
        except (ClientError, BotoCoreError) as e:
            raise RemoteError("redirect", source_key, str(e)) from e

    def delete(self, remote_key: str) -> None:
        if self._dry_run:
            logger.info("[DRY-RUN] delete s3://%s/%s", self._bucket, remote_key)
            return
        try:
            self._client.delete_object(Bucket=self._bucket, Key=remote_key)
        except (ClientError, BotoCoreError) as e:
            raise RemoteError("delete", remote_key, str(e)) from e

    def invalidate(self, path_pattern: str) -> None:
        if not self._distribution or self._cloudfront is None:
            raise RemoteError("invalidate", path_pattern, "no CloudFront distribution configured")
        if self._dry_run:
            logger.info("[DRY-RUN] invalidate %s on %s", path_pattern, self._distribution)
            return
        try:
            self._cloudfront.create_invalidation(
                DistributionId=self._distribution,
                InvalidationBatch={
                    "Paths": {"Quantity": 1, "Items": [path_pattern]},
                    "CallerReference": str(time.time_ns()),
                },
            )
        except (ClientError, BotoCoreError) as e:
            raise RemoteError("invalidate", path_pattern, str(e)) from e
