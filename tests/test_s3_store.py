"""Tests for the S3 RemoteStore.

All boto3 clients are MagicMocks; no network access.

Tests cover:
- Paginated listing
- Upload skip when ETag and headers match
- Redirect objects
- Delete and CloudFront invalidation
- Dry-run mode
- Client construction from SyncConfig
"""

import hashlib
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from sitesync.config import SyncConfig
from sitesync.errors import RemoteError
from sitesync.remote.s3 import S3RemoteStore, _normalize_etag, build_boto_config
from sitesync.upload_policy import UploadPolicy


OWNER_GRANT = {"Grantee": {"Type": "CanonicalUser", "ID": "owner"}, "Permission": "FULL_CONTROL"}
PUBLIC_READ_GRANT = {
    "Grantee": {"Type": "Group", "URI": "http://acs.amazonaws.com/groups/global/AllUsers"},
    "Permission": "READ",
}


def _client_error(code, operation="HeadObject"):
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def client():
    mock = MagicMock()
    mock.head_object.side_effect = _client_error("404")
    mock.get_object_acl.return_value = {"Grants": [OWNER_GRANT]}
    return mock


@pytest.fixture
def store(client):
    return S3RemoteStore(client=client, bucket="test-bucket")


@pytest.fixture
def page_file(tmp_path):
    path = tmp_path / "index.html"
    path.write_bytes(b"<html>hello</html>")
    return path


def _md5(path):
    return hashlib.md5(path.read_bytes()).hexdigest()


def _matching_head(path):
    return {"ETag": f'"{_md5(path)}"', "ContentType": "text/html", "Metadata": {}}


# =============================================================================
# LIST
# =============================================================================


class TestList:
    """Tests for S3RemoteStore.list."""

    def test_collects_every_page(self, client, store):
        client.get_paginator.return_value.paginate.return_value = [
            {"Contents": [{"Key": "site/a.txt"}, {"Key": "site/b.txt"}]},
            {"Contents": [{"Key": "site/c.txt"}]},
            {},
        ]

        assert store.list("site/") == ["site/a.txt", "site/b.txt", "site/c.txt"]
        client.get_paginator.assert_called_once_with("list_objects_v2")
        client.get_paginator.return_value.paginate.assert_called_once_with(
            Bucket="test-bucket", Prefix="site/"
        )

    def test_client_error_becomes_remote_error(self, client, store):
        client.get_paginator.return_value.paginate.side_effect = _client_error("AccessDenied", "ListObjectsV2")

        with pytest.raises(RemoteError) as exc_info:
            store.list("site/")

        assert exc_info.value.operation == "list"
        assert exc_info.value.key == "site/"

    def test_connection_error_becomes_remote_error(self, client, store):
        client.get_paginator.return_value.paginate.side_effect = EndpointConnectionError(
            endpoint_url="https://s3.example.com"
        )

        with pytest.raises(RemoteError):
            store.list("")


# =============================================================================
# UPLOAD
# =============================================================================


class TestUpload:
    """Tests for S3RemoteStore.upload."""

    def test_new_object_is_put(self, client, store, page_file):
        store.upload(str(page_file), "site/index.html")

        client.put_object.assert_called_once()
        kwargs = client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "test-bucket"
        assert kwargs["Key"] == "site/index.html"
        assert kwargs["ContentType"] == "text/html"
        assert kwargs["ACL"] == "private"
        assert "CacheControl" not in kwargs

    def test_policy_attributes_are_applied(self, client, page_file):
        policy = UploadPolicy(
            access={"*.html": "public-read"},
            cache_control={"*.html": "max-age=60"},
            metadata={"*": {"team": "web"}},
        )
        store = S3RemoteStore(client=client, bucket="test-bucket", policy=policy)

        store.upload(str(page_file), "index.html")

        kwargs = client.put_object.call_args.kwargs
        assert kwargs["ACL"] == "public-read"
        assert kwargs["CacheControl"] == "max-age=60"
        assert kwargs["Metadata"] == {"team": "web"}

    def test_unchanged_object_is_skipped(self, client, store, page_file):
        client.head_object.side_effect = None
        client.head_object.return_value = {
            "ETag": f'"{_md5(page_file)}"',
            "ContentType": "text/html",
            "Metadata": {},
        }

        store.upload(str(page_file), "site/index.html")

        client.put_object.assert_not_called()

    def test_changed_content_is_put(self, client, store, page_file):
        client.head_object.side_effect = None
        client.head_object.return_value = {"ETag": '"0123"', "ContentType": "text/html"}

        store.upload(str(page_file), "site/index.html")

        client.put_object.assert_called_once()

    def test_changed_headers_are_put(self, client, page_file):
        """Same content but a new cache-control header still uploads."""
        client.head_object.side_effect = None
        client.head_object.return_value = {
            "ETag": f'"{_md5(page_file)}"',
            "ContentType": "text/html",
            "Metadata": {},
        }
        store = S3RemoteStore(
            client=client,
            bucket="test-bucket",
            policy=UploadPolicy(cache_control={"*": "no-cache"}),
        )

        store.upload(str(page_file), "site/index.html")

        client.put_object.assert_called_once()

    def test_acl_change_alone_is_put(self, client, page_file):
        """Unchanged content on a private object is re-put when the policy makes it public."""
        client.head_object.side_effect = None
        client.head_object.return_value = _matching_head(page_file)
        store = S3RemoteStore(client=client, bucket="test-bucket", policy=UploadPolicy(access={"*": "public-read"}))

        store.upload(str(page_file), "site/index.html")

        client.get_object_acl.assert_called_once_with(Bucket="test-bucket", Key="site/index.html")
        assert client.put_object.call_args.kwargs["ACL"] == "public-read"

    def test_public_object_made_private_is_put(self, client, store, page_file):
        client.head_object.side_effect = None
        client.head_object.return_value = _matching_head(page_file)
        client.get_object_acl.return_value = {"Grants": [OWNER_GRANT, PUBLIC_READ_GRANT]}

        store.upload(str(page_file), "site/index.html")

        assert client.put_object.call_args.kwargs["ACL"] == "private"

    def test_public_object_with_public_policy_is_skipped(self, client, page_file):
        client.head_object.side_effect = None
        client.head_object.return_value = _matching_head(page_file)
        client.get_object_acl.return_value = {"Grants": [OWNER_GRANT, PUBLIC_READ_GRANT]}
        store = S3RemoteStore(client=client, bucket="test-bucket", policy=UploadPolicy(access={"*": "public-read"}))

        store.upload(str(page_file), "site/index.html")

        client.put_object.assert_not_called()

    def test_acl_read_error_raises(self, client, store, page_file):
        client.head_object.side_effect = None
        client.head_object.return_value = _matching_head(page_file)
        client.get_object_acl.side_effect = _client_error("AccessDenied", "GetObjectAcl")

        with pytest.raises(RemoteError, match="upload 'site/index.html' failed"):
            store.upload(str(page_file), "site/index.html")

        client.put_object.assert_not_called()

    def test_head_forbidden_raises(self, client, store, page_file):
        client.head_object.side_effect = _client_error("403")

        with pytest.raises(RemoteError, match="upload 'site/index.html' failed"):
            store.upload(str(page_file), "site/index.html")

        client.put_object.assert_not_called()

    def test_missing_local_file_raises(self, client, store, tmp_path):
        with pytest.raises(RemoteError) as exc_info:
            store.upload(str(tmp_path / "gone.txt"), "site/gone.txt")

        assert exc_info.value.operation == "upload"
        client.head_object.assert_not_called()

    def test_put_error_raises(self, client, store, page_file):
        client.put_object.side_effect = _client_error("SlowDown", "PutObject")

        with pytest.raises(RemoteError):
            store.upload(str(page_file), "site/index.html")


# =============================================================================
# REDIRECT / DELETE / INVALIDATE
# =============================================================================


class TestRedirect:
    """Tests for S3RemoteStore.redirect."""

    def test_puts_empty_public_redirect_object(self, client, store):
        store.redirect("old.html", "https://example.com/new")

        client.put_object.assert_called_once_with(
            Bucket="test-bucket",
            Key="old.html",
            Body=b"",
            ACL="public-read",
            WebsiteRedirectLocation="https://example.com/new",
        )

    def test_error_becomes_remote_error(self, client, store):
        client.put_object.side_effect = _client_error("AccessDenied", "PutObject")

        with pytest.raises(RemoteError, match="redirect 'old.html' failed"):
            store.redirect("old.html", "/new.html")


class TestDelete:
    """Tests for S3RemoteStore.delete."""

    def test_deletes_object(self, client, store):
        store.delete("site/old.txt")

        client.delete_object.assert_called_once_with(Bucket="test-bucket", Key="site/old.txt")

    def test_error_becomes_remote_error(self, client, store):
        client.delete_object.side_effect = _client_error("AccessDenied", "DeleteObject")

        with pytest.raises(RemoteError):
            store.delete("site/old.txt")


class TestInvalidate:
    """Tests for S3RemoteStore.invalidate."""

    def test_creates_invalidation(self, client):
        cloudfront = MagicMock()
        store = S3RemoteStore(client=client, bucket="b", cloudfront_client=cloudfront, distribution="E123")

        store.invalidate("/*")

        kwargs = cloudfront.create_invalidation.call_args.kwargs
        assert kwargs["DistributionId"] == "E123"
        assert kwargs["InvalidationBatch"]["Paths"] == {"Quantity": 1, "Items": ["/*"]}
        assert kwargs["InvalidationBatch"]["CallerReference"]

    def test_without_distribution_raises(self, store):
        with pytest.raises(RemoteError, match="no CloudFront distribution"):
            store.invalidate("/*")

    def test_error_becomes_remote_error(self, client):
        cloudfront = MagicMock()
        cloudfront.create_invalidation.side_effect = _client_error("TooManyInvalidationsInProgress", "CreateInvalidation")
        store = S3RemoteStore(client=client, bucket="b", cloudfront_client=cloudfront, distribution="E123")

        with pytest.raises(RemoteError):
            store.invalidate("/*")


# =============================================================================
# DRY RUN
# =============================================================================


class TestDryRun:
    """Mutating calls are logged, never sent."""

    @pytest.fixture
    def dry_store(self, client):
        return S3RemoteStore(
            client=client,
            bucket="test-bucket",
            cloudfront_client=MagicMock(),
            distribution="E123",
            dry_run=True,
        )

    def test_upload_not_sent(self, client, dry_store, page_file, caplog):
        with caplog.at_level("INFO", logger="sitesync"):
            dry_store.upload(str(page_file), "site/index.html")

        client.put_object.assert_not_called()
        assert "[DRY-RUN] upload" in caplog.text

    def test_redirect_and_delete_not_sent(self, client, dry_store):
        dry_store.redirect("old.html", "/new.html")
        dry_store.delete("site/old.txt")

        client.put_object.assert_not_called()
        client.delete_object.assert_not_called()

    def test_invalidate_not_sent(self, dry_store):
        dry_store.invalidate("/*")

        dry_store._cloudfront.create_invalidation.assert_not_called()

    def test_list_still_reads(self, client, dry_store):
        client.get_paginator.return_value.paginate.return_value = [{"Contents": [{"Key": "x"}]}]

        assert dry_store.list("") == ["x"]


# =============================================================================
# CONSTRUCTION
# =============================================================================


class TestFromConfig:
    """Tests for S3RemoteStore.from_config."""

    @patch("sitesync.remote.s3.boto3.Session")
    def test_static_credentials_and_endpoint(self, mock_session):
        config = SyncConfig(
            bucket="test-bucket",
            access_key="AKIA",
            secret_key="secret",
            region="eu-west-1",
            endpoint="http://localhost:9000",
            path_style=True,
        )

        store = S3RemoteStore.from_config(config)

        mock_session.assert_called_once_with(
            aws_access_key_id="AKIA",
            aws_secret_access_key="secret",
            region_name="eu-west-1",
        )
        args, kwargs = mock_session.return_value.client.call_args
        assert args == ("s3",)
        assert kwargs["endpoint_url"] == "http://localhost:9000"
        assert store.bucket == "test-bucket"

    @patch("sitesync.remote.s3.boto3.Session")
    def test_default_credential_chain(self, mock_session):
        S3RemoteStore.from_config(SyncConfig(bucket="b", access_key="AKIA"))

        mock_session.assert_called_once_with()
        mock_session.return_value.client.assert_called_once()

    @patch("sitesync.remote.s3.boto3.Session")
    def test_cloudfront_client_when_distribution_set(self, mock_session):
        S3RemoteStore.from_config(SyncConfig(bucket="b", cloudfront_distribution="E123"))

        services = [c.args[0] for c in mock_session.return_value.client.call_args_list]
        assert services == ["s3", "cloudfront"]


class TestHelpers:
    """Tests for module helpers."""

    @pytest.mark.parametrize("etag,expected", [
        ('"ABCdef"', "abcdef"),
        ("abc", "abc"),
        ("", ""),
        (None, ""),
    ])
    def test_normalize_etag(self, etag, expected):
        assert _normalize_etag(etag) == expected

    def test_boto_config_path_style(self):
        assert build_boto_config(path_style=True).s3 == {"addressing_style": "path"}

    def test_boto_config_timeouts(self):
        config = build_boto_config()

        assert config.connect_timeout == 5
        assert config.read_timeout == 60
