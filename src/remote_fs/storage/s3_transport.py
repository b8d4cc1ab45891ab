"""
boto3 implementation of the ObjectTransport protocol.

Works with AWS S3 and S3-compatible services (MinIO, LocalStack, ...).
Every SDK exception is translated into the remote-fs error taxonomy here;
nothing above this module sees botocore types.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import ObjectNotFound, TransportError
from ..settings import Settings
from .metadata import ObjectMetadata
from .models import (
    CompletedMultipartUpload,
    CompletedPart,
    CompletedUpload,
    HeadObjectResponse,
    ListObjectsPage,
)
from .transport import ObjectTransport

__all__ = ["S3Transport", "build_s3_client"]

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def build_s3_client(settings: Settings) -> Any:
    """
    Create a boto3 S3 client from settings.

    Static keys win over profiles. Without keys, the named profile is used if
    configured, otherwise boto3's default credential chain.
    """
    config = Config(
        region_name=settings.s3_region,
        connect_timeout=settings.http_timeout_s,
        read_timeout=settings.http_timeout_s,
        retries={"total_max_attempts": settings.http_retry + 1, "mode": "standard"},
        s3={"addressing_style": settings.s3_addressing_style},
    )

    if settings.uses_static_credentials:
        logger.debug(f"S3 client using static credentials in region {settings.s3_region}")
        session = boto3.Session(
            aws_access_key_id=settings.s3_access_key_id,
            aws_secret_access_key=settings.s3_secret_access_key,
            aws_session_token=settings.s3_session_token,
            region_name=settings.s3_region,
        )
    elif settings.s3_profile:
        logger.debug(f"S3 client using profile {settings.s3_profile} in region {settings.s3_region}")
        session = boto3.Session(
            profile_name=settings.s3_profile,
            region_name=settings.s3_region,
        )
    else:
        logger.debug(f"S3 client using default credential chain in region {settings.s3_region}")
        session = boto3.Session(region_name=settings.s3_region)

    if settings.s3_endpoint_url:
        logger.debug(f"S3 client using custom endpoint: {settings.s3_endpoint_url}")

    return session.client("s3", endpoint_url=settings.s3_endpoint_url, config=config)


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3Transport(ObjectTransport):
    """
    ObjectTransport backed by a boto3 S3 client.

    Performs exactly one SDK call per method and never retries beyond what
    the botocore Config allows (http_retry, default 0).
    """

    def __init__(self, *, settings: Settings, client: Any = None) -> None:
        """
        Initialize the transport.

        Args:
            settings: Settings with S3 connection configuration
            client: Pre-built boto3 client (tests, shared clients)
        """
        self._settings = settings
        self._client = client if client is not None else build_s3_client(settings)

    def _translate(self, exc: Exception, action: str, bucket: str, key: str) -> Exception:
        uri = f"s3://{bucket}/{key}"
        if isinstance(exc, ClientError) and _error_code(exc) in _NOT_FOUND_CODES:
            return ObjectNotFound(f"Object not found: {uri}")
        return TransportError(f"Failed to {action} {uri}: {exc}")

    def head(self, bucket: str, key: str) -> ObjectMetadata:
        logger.debug(f"HEAD s3://{bucket}/{key}")
        try:
            response = self._client.head_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise self._translate(exc, "get object metadata for", bucket, key) from exc
        return HeadObjectResponse.model_validate(response).to_metadata(key)

    def get_range(self, bucket: str, key: str, start: int, end: int) -> bytes:
        logger.debug(f"GET s3://{bucket}/{key} bytes={start}-{end}")
        try:
            response = self._client.get_object(Bucket=bucket, Key=key, Range=f"bytes={start}-{end}")
            body = response["Body"]
            try:
                return body.read()
            finally:
                body.close()
        except (ClientError, BotoCoreError) as exc:
            raise self._translate(exc, "read range of", bucket, key) from exc

    def list_page(
        self,
        bucket: str,
        prefix: str,
        *,
        delimiter: Optional[str] = None,
        continuation_token: Optional[str] = None,
    ) -> ListObjectsPage:
        params: dict[str, Any] = {"Bucket": bucket, "Prefix": prefix}
        if delimiter:
            params["Delimiter"] = delimiter
        if continuation_token:
            params["ContinuationToken"] = continuation_token

        logger.debug(f"LIST s3://{bucket}/{prefix} delimiter={delimiter!r} token={continuation_token!r}")
        try:
            response = self._client.list_objects_v2(**params)
        except (ClientError, BotoCoreError) as exc:
            raise TransportError(f"Failed to list s3://{bucket}/{prefix}: {exc}") from exc
        return ListObjectsPage.model_validate(response)

    def create_multipart_upload(self, bucket: str, key: str) -> str:
        try:
            response = self._client.create_multipart_upload(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise TransportError(f"Failed to create multipart upload for s3://{bucket}/{key}: {exc}") from exc

        upload_id = response.get("UploadId")
        if not upload_id:
            raise TransportError("S3 response missing UploadId")

        logger.debug(f"Initiated multipart upload {upload_id} for s3://{bucket}/{key}")
        return str(upload_id)

    def upload_part(self, bucket: str, key: str, upload_id: str, part_number: int, data: bytes) -> str:
        try:
            response = self._client.upload_part(
                Bucket=bucket,
                Key=key,
                UploadId=upload_id,
                PartNumber=int(part_number),
                Body=data,
                ContentLength=len(data),
            )
        except (ClientError, BotoCoreError) as exc:
            raise TransportError(f"Failed to upload part {part_number} of s3://{bucket}/{key}: {exc}") from exc

        etag = response.get("ETag")
        if not etag:
            raise TransportError(f"S3 response missing ETag for part {part_number}")
        return str(etag)

    def complete_multipart_upload(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> CompletedUpload:
        manifest = CompletedMultipartUpload(parts=list(parts))
        try:
            response = self._client.complete_multipart_upload(
                Bucket=bucket,
                Key=key,
                UploadId=upload_id,
                MultipartUpload=manifest.to_request(),
            )
        except (ClientError, BotoCoreError) as exc:
            raise TransportError(f"Failed to complete multipart upload for s3://{bucket}/{key}: {exc}") from exc

        # Some S3-compatible services omit Bucket/Key in the response
        return CompletedUpload.model_validate({"Bucket": bucket, "Key": key, **response})

    def abort_multipart_upload(self, bucket: str, key: str, upload_id: str) -> None:
        try:
            self._client.abort_multipart_upload(Bucket=bucket, Key=key, UploadId=upload_id)
        except (ClientError, BotoCoreError) as exc:
            raise TransportError(f"Failed to abort multipart upload for s3://{bucket}/{key}: {exc}") from exc

    def delete(self, bucket: str, key: str) -> None:
        logger.debug(f"DELETE s3://{bucket}/{key}")
        try:
            self._client.delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise TransportError(f"Failed to delete s3://{bucket}/{key}: {exc}") from exc
