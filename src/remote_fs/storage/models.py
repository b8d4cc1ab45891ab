"""
Wire models for the S3 multipart and listing APIs.

These Pydantic models validate what goes to and comes back from boto3, so the
streaming engine works with typed values instead of raw response dicts.
Field aliases match the boto3 key names.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .metadata import ObjectMetadata

__all__ = [
    "CompletedPart",
    "CompletedMultipartUpload",
    "CompletedUpload",
    "HeadObjectResponse",
    "ObjectSummary",
    "CommonPrefix",
    "ListObjectsPage",
]

# S3 allows at most 10,000 parts per upload
MAX_PART_NUMBER = 10_000


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class CompletedPart(_WireModel):
    """One committed part of a multipart upload."""
    part_number: int = Field(..., alias="PartNumber", ge=1, le=MAX_PART_NUMBER)
    etag: str = Field(..., alias="ETag", description="Opaque part hash returned by upload_part")


class CompletedMultipartUpload(_WireModel):
    """
    Ordered part list sent with complete_multipart_upload.

    Part numbers must be contiguous from 1 and the list non-empty.
    """
    parts: List[CompletedPart] = Field(..., alias="Parts")

    @field_validator("parts")
    @classmethod
    def validate_contiguous(cls, v):
        """Ensure parts are numbered 1..n with no gaps."""
        if not v:
            raise ValueError("multipart upload requires at least one part")
        for expected, part in enumerate(v, start=1):
            if part.part_number != expected:
                raise ValueError(
                    f"part numbers must be contiguous from 1: expected {expected}, got {part.part_number}"
                )
        return v

    def to_request(self) -> dict:
        """Payload for the MultipartUpload argument of complete_multipart_upload."""
        return self.model_dump(by_alias=True)


class CompletedUpload(_WireModel):
    """Identity echoed back by complete_multipart_upload."""
    bucket: str = Field(..., alias="Bucket")
    key: str = Field(..., alias="Key")
    etag: str = Field(default="", alias="ETag")


class HeadObjectResponse(_WireModel):
    """Subset of head_object output used for stat."""
    content_length: int = Field(..., alias="ContentLength", ge=0)
    etag: str = Field(default="", alias="ETag")
    last_modified: Optional[datetime] = Field(default=None, alias="LastModified")

    def to_metadata(self, name: str) -> ObjectMetadata:
        return ObjectMetadata(
            name=name,
            size=self.content_length,
            etag=self.etag,
            modified=self.last_modified,
        )


class ObjectSummary(_WireModel):
    """One entry of a list_objects_v2 page."""
    key: str = Field(..., alias="Key")
    size: int = Field(default=0, alias="Size", ge=0)
    etag: str = Field(default="", alias="ETag")
    last_modified: Optional[datetime] = Field(default=None, alias="LastModified")

    def to_metadata(self) -> ObjectMetadata:
        return ObjectMetadata(
            name=self.key,
            size=self.size,
            etag=self.etag,
            modified=self.last_modified,
        )


class CommonPrefix(_WireModel):
    prefix: str = Field(..., alias="Prefix")


class ListObjectsPage(_WireModel):
    """One page of list_objects_v2 output."""
    contents: List[ObjectSummary] = Field(default_factory=list, alias="Contents")
    common_prefixes: List[CommonPrefix] = Field(default_factory=list, alias="CommonPrefixes")
    is_truncated: bool = Field(default=False, alias="IsTruncated")
    next_continuation_token: Optional[str] = Field(default=None, alias="NextContinuationToken")

    @property
    def next_token(self) -> Optional[str]:
        """Continuation token for the next page, or None on the last page."""
        if not self.is_truncated:
            return None
        return self.next_continuation_token
