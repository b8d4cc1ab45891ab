"""
Tests for the boto3-backed transport.

The S3 client is a MagicMock, so these tests pin the exact SDK calls and the
translation of botocore exceptions into the remote-fs taxonomy.
"""
from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock, Mock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from remote_fs.errors import ObjectNotFound, TransportError
from remote_fs.settings import Settings
from remote_fs.storage.models import CompletedPart
from remote_fs.storage.s3_transport import S3Transport, build_s3_client
from remote_fs.storage.transport import ObjectTransport


def client_error(code: str, operation: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def s3(client):
    return S3Transport(settings=Settings(), client=client)


class TestProtocol:

    def test_satisfies_transport_protocol(self, s3):
        assert isinstance(s3, ObjectTransport)


class TestHead:
    """Metadata probe and not-found mapping."""

    def test_head_maps_response(self, s3, client):
        modified = datetime(2024, 1, 2, tzinfo=timezone.utc)
        client.head_object.return_value = {
            "ContentLength": 42,
            "ETag": '"abc"',
            "LastModified": modified,
            "ResponseMetadata": {"HTTPStatusCode": 200},
        }

        meta = s3.head("bucket", "dir/key")

        client.head_object.assert_called_once_with(Bucket="bucket", Key="dir/key")
        assert meta.name == "dir/key"
        assert meta.size == 42
        assert meta.etag == '"abc"'
        assert meta.modified == modified

    @pytest.mark.parametrize("code", ["404", "NoSuchKey", "NotFound"])
    def test_not_found_codes(self, s3, client, code):
        client.head_object.side_effect = client_error(code)
        with pytest.raises(ObjectNotFound, match="s3://bucket/key"):
            s3.head("bucket", "key")

    def test_access_denied_is_transport_error(self, s3, client):
        error = client_error("AccessDenied")
        client.head_object.side_effect = error
        with pytest.raises(TransportError, match="Failed to get object metadata") as exc_info:
            s3.head("bucket", "key")
        assert exc_info.value.__cause__ is error

    def test_connection_error_is_transport_error(self, s3, client):
        client.head_object.side_effect = EndpointConnectionError(endpoint_url="http://nowhere")
        with pytest.raises(TransportError):
            s3.head("bucket", "key")


class TestGetRange:
    """Inclusive HTTP ranges."""

    def test_requests_inclusive_range(self, s3, client):
        body = Mock()
        body.read.return_value = b"hello"
        client.get_object.return_value = {"Body": body}

        assert s3.get_range("bucket", "key", 10, 14) == b"hello"
        client.get_object.assert_called_once_with(Bucket="bucket", Key="key", Range="bytes=10-14")
        body.close.assert_called_once()

    def test_deleted_object_is_not_found(self, s3, client):
        client.get_object.side_effect = client_error("NoSuchKey", "GetObject")
        with pytest.raises(ObjectNotFound):
            s3.get_range("bucket", "key", 0, 9)

    def test_invalid_range_is_transport_error(self, s3, client):
        client.get_object.side_effect = client_error("InvalidRange", "GetObject")
        with pytest.raises(TransportError, match="Failed to read range"):
            s3.get_range("bucket", "key", 100, 109)


class TestListPage:
    """Single list_objects_v2 calls."""

    def test_first_page_omits_optional_params(self, s3, client):
        client.list_objects_v2.return_value = {"KeyCount": 0, "IsTruncated": False}
        page = s3.list_page("bucket", "prefix/")

        client.list_objects_v2.assert_called_once_with(Bucket="bucket", Prefix="prefix/")
        assert page.contents == []
        assert page.next_token is None

    def test_passes_delimiter_and_token(self, s3, client):
        client.list_objects_v2.return_value = {
            "Contents": [{"Key": "prefix/a", "Size": 3, "ETag": '"e"'}],
            "CommonPrefixes": [{"Prefix": "prefix/sub/"}],
            "IsTruncated": True,
            "NextContinuationToken": "tok-2",
        }
        page = s3.list_page("bucket", "prefix/", delimiter="/", continuation_token="tok-1")

        client.list_objects_v2.assert_called_once_with(
            Bucket="bucket", Prefix="prefix/", Delimiter="/", ContinuationToken="tok-1"
        )
        assert [c.key for c in page.contents] == ["prefix/a"]
        assert [p.prefix for p in page.common_prefixes] == ["prefix/sub/"]
        assert page.next_token == "tok-2"

    def test_list_failure(self, s3, client):
        client.list_objects_v2.side_effect = client_error("NoSuchBucket", "ListObjectsV2")
        with pytest.raises(TransportError, match="Failed to list s3://bucket/p"):
            s3.list_page("bucket", "p")


class TestMultipart:
    """Create, upload part, complete and abort."""

    def test_create_returns_upload_id(self, s3, client):
        client.create_multipart_upload.return_value = {"UploadId": "up-1"}
        assert s3.create_multipart_upload("bucket", "key") == "up-1"
        client.create_multipart_upload.assert_called_once_with(Bucket="bucket", Key="key")

    def test_create_missing_upload_id(self, s3, client):
        client.create_multipart_upload.return_value = {}
        with pytest.raises(TransportError, match="missing UploadId"):
            s3.create_multipart_upload("bucket", "key")

    def test_create_failure(self, s3, client):
        client.create_multipart_upload.side_effect = client_error("AccessDenied", "CreateMultipartUpload")
        with pytest.raises(TransportError, match="Failed to create multipart upload"):
            s3.create_multipart_upload("bucket", "key")

    def test_upload_part(self, s3, client):
        client.upload_part.return_value = {"ETag": '"p1"'}
        assert s3.upload_part("bucket", "key", "up-1", 1, b"abc") == '"p1"'
        client.upload_part.assert_called_once_with(
            Bucket="bucket", Key="key", UploadId="up-1", PartNumber=1, Body=b"abc", ContentLength=3
        )

    def test_upload_part_missing_etag(self, s3, client):
        client.upload_part.return_value = {}
        with pytest.raises(TransportError, match="missing ETag for part 2"):
            s3.upload_part("bucket", "key", "up-1", 2, b"abc")

    def test_upload_part_failure(self, s3, client):
        client.upload_part.side_effect = client_error("InternalError", "UploadPart")
        with pytest.raises(TransportError, match="Failed to upload part 1"):
            s3.upload_part("bucket", "key", "up-1", 1, b"abc")

    def test_complete_sends_ordered_parts(self, s3, client):
        client.complete_multipart_upload.return_value = {
            "Bucket": "bucket",
            "Key": "key",
            "ETag": '"final-2"',
        }
        parts = [
            CompletedPart(part_number=1, etag='"p1"'),
            CompletedPart(part_number=2, etag='"p2"'),
        ]

        result = s3.complete_multipart_upload("bucket", "key", "up-1", parts)

        client.complete_multipart_upload.assert_called_once_with(
            Bucket="bucket",
            Key="key",
            UploadId="up-1",
            MultipartUpload={
                "Parts": [
                    {"PartNumber": 1, "ETag": '"p1"'},
                    {"PartNumber": 2, "ETag": '"p2"'},
                ]
            },
        )
        assert result.etag == '"final-2"'
        assert result.key == "key"

    def test_complete_fills_missing_identity(self, s3, client):
        client.complete_multipart_upload.return_value = {"ETag": '"e"'}
        result = s3.complete_multipart_upload(
            "bucket", "key", "up-1", [CompletedPart(part_number=1, etag='"p1"')]
        )
        assert (result.bucket, result.key) == ("bucket", "key")

    def test_complete_rejects_gaps_before_calling_s3(self, s3, client):
        parts = [
            CompletedPart(part_number=1, etag='"p1"'),
            CompletedPart(part_number=3, etag='"p3"'),
        ]
        with pytest.raises(ValueError, match="contiguous"):
            s3.complete_multipart_upload("bucket", "key", "up-1", parts)
        client.complete_multipart_upload.assert_not_called()

    def test_complete_failure(self, s3, client):
        client.complete_multipart_upload.side_effect = client_error("InvalidPart", "CompleteMultipartUpload")
        with pytest.raises(TransportError, match="Failed to complete multipart upload"):
            s3.complete_multipart_upload(
                "bucket", "key", "up-1", [CompletedPart(part_number=1, etag='"p1"')]
            )

    def test_abort(self, s3, client):
        s3.abort_multipart_upload("bucket", "key", "up-1")
        client.abort_multipart_upload.assert_called_once_with(Bucket="bucket", Key="key", UploadId="up-1")

    def test_abort_failure(self, s3, client):
        client.abort_multipart_upload.side_effect = client_error("NoSuchUpload", "AbortMultipartUpload")
        with pytest.raises(TransportError, match="Failed to abort"):
            s3.abort_multipart_upload("bucket", "key", "up-1")


class TestDelete:

    def test_delete(self, s3, client):
        s3.delete("bucket", "key")
        client.delete_object.assert_called_once_with(Bucket="bucket", Key="key")

    def test_delete_failure(self, s3, client):
        client.delete_object.side_effect = client_error("AccessDenied", "DeleteObject")
        with pytest.raises(TransportError, match="Failed to delete s3://bucket/key"):
            s3.delete("bucket", "key")


class TestBuildClient:
    """Session and botocore Config selection."""

    def test_static_credentials(self):
        settings = Settings(
            s3_region="eu-west-1",
            s3_access_key_id="AKIA",
            s3_secret_access_key="secret",
            s3_session_token="token",
            s3_endpoint_url="http://localhost:9000",
            s3_addressing_style="path",
            http_retry=2,
        )
        with patch("remote_fs.storage.s3_transport.boto3.Session") as mock_session:
            build_s3_client(settings)

        mock_session.assert_called_once_with(
            aws_access_key_id="AKIA",
            aws_secret_access_key="secret",
            aws_session_token="token",
            region_name="eu-west-1",
        )
        args, kwargs = mock_session.return_value.client.call_args
        assert args == ("s3",)
        assert kwargs["endpoint_url"] == "http://localhost:9000"
        config = kwargs["config"]
        assert config.region_name == "eu-west-1"
        assert config.retries == {"total_max_attempts": 3, "mode": "standard"}
        assert config.s3 == {"addressing_style": "path"}

    def test_profile(self):
        settings = Settings(s3_profile="dev")
        with patch("remote_fs.storage.s3_transport.boto3.Session") as mock_session:
            build_s3_client(settings)
        mock_session.assert_called_once_with(profile_name="dev", region_name="us-east-1")

    def test_default_chain(self):
        with patch("remote_fs.storage.s3_transport.boto3.Session") as mock_session:
            build_s3_client(Settings())
        mock_session.assert_called_once_with(region_name="us-east-1")
        kwargs = mock_session.return_value.client.call_args.kwargs
        assert kwargs["endpoint_url"] is None
        assert kwargs["config"].connect_timeout == 60.0

    def test_transport_builds_client_when_not_given(self):
        with patch("remote_fs.storage.s3_transport.build_s3_client") as mock_build:
            S3Transport(settings=Settings())
        mock_build.assert_called_once()
