"""Tests for UploadPolicy attribute resolution."""

import pytest

from sitesync.upload_policy import DEFAULT_ACL, DEFAULT_CONTENT_TYPE, UploadAttributes, UploadPolicy


class TestResolve:
    """Tests for UploadPolicy.resolve."""

    def test_defaults(self):
        attrs = UploadPolicy().resolve("public/page.html", "site/page.html")

        assert attrs.acl == DEFAULT_ACL
        assert attrs.content_type == "text/html"
        assert attrs.content_encoding is None
        assert attrs.cache_control is None
        assert attrs.metadata == {}

    def test_unknown_extension_falls_back_to_octet_stream(self):
        attrs = UploadPolicy().resolve("public/blob.zzz-unknown", "blob.zzz-unknown")

        assert attrs.content_type == DEFAULT_CONTENT_TYPE

    @pytest.mark.parametrize("ext", ["svgz", ".svgz", ".SVGZ"])
    def test_extension_map_normalizes_keys(self, ext):
        policy = UploadPolicy(content_type={ext: "image/svg+xml"}, content_encoding={ext: "gzip"})

        attrs = policy.resolve("public/logo.svgz", "img/logo.SVGZ")

        assert attrs.content_type == "image/svg+xml"
        assert attrs.content_encoding == "gzip"

    def test_access_first_match_wins(self):
        policy = UploadPolicy(access={"private/*": "private", "*": "public-read"})

        assert policy.resolve("x", "private/secret.txt").acl == "private"
        assert policy.resolve("x", "index.html").acl == "public-read"

    def test_cache_control_by_glob(self):
        policy = UploadPolicy(cache_control={"*.css": "max-age=31536000"})

        assert policy.resolve("a.css", "css/a.css").cache_control == "max-age=31536000"
        assert policy.resolve("a.html", "a.html").cache_control is None

    def test_metadata_merges_every_match(self):
        policy = UploadPolicy(metadata={
            "*": {"owner": "web", "tier": "default"},
            "*.html": {"tier": "pages"},
        })

        attrs = policy.resolve("index.html", "index.html")

        assert attrs.metadata == {"owner": "web", "tier": "pages"}


class TestUploadAttributes:
    """Tests for UploadAttributes.to_put_args."""

    def test_minimal_args(self):
        assert UploadAttributes().to_put_args() == {
            "ACL": "private",
            "ContentType": "application/octet-stream",
        }

    def test_full_args(self):
        attrs = UploadAttributes(
            acl="public-read",
            content_type="text/css",
            content_encoding="gzip",
            cache_control="no-cache",
            metadata={"k": "v"},
        )

        assert attrs.to_put_args() == {
            "ACL": "public-read",
            "ContentType": "text/css",
            "ContentEncoding": "gzip",
            "CacheControl": "no-cache",
            "Metadata": {"k": "v"},
        }
