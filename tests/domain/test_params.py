"""Tests for transport parameter assembly."""

from __future__ import annotations

import pytest

from storage_provider.common.config import StorageConfig
from storage_provider.domain.errors import ConfigurationError
from storage_provider.domain.params import Operation, assemble


@pytest.fixture()
def config():
    return StorageConfig(bucket="test-bucket")


class TestGetParams:
    def test_minimal_presign_params(self, config):
        params = assemble(Operation.GET, config, "public/a.txt")

        assert params == {"Bucket": "test-bucket", "Key": "public/a.txt", "Expires": 900}

    def test_explicit_expires(self, config):
        params = assemble("get", config.merge({"expires": 60}), "public/a.txt")

        assert params["Expires"] == 60

    def test_download_has_no_expires(self, config):
        params = assemble("get", config.merge({"download": True, "expires": 60}), "k")

        assert "Expires" not in params

    def test_response_overrides_and_sse_customer_fields(self, config):
        opt = config.merge(
            {
                "cacheControl": "no-cache",
                "contentDisposition": "attachment",
                "contentEncoding": "gzip",
                "contentLanguage": "en",
                "contentType": "text/plain",
                "SSECustomerAlgorithm": "AES256",
                "SSECustomerKey": "key",
                "SSECustomerKeyMD5": "md5",
            }
        )

        params = assemble("get", opt, "k")

        assert params["ResponseCacheControl"] == "no-cache"
        assert params["ResponseContentDisposition"] == "attachment"
        assert params["ResponseContentEncoding"] == "gzip"
        assert params["ResponseContentLanguage"] == "en"
        assert params["ResponseContentType"] == "text/plain"
        assert params["SSECustomerAlgorithm"] == "AES256"
        assert params["SSECustomerKey"] == "key"
        assert params["SSECustomerKeyMD5"] == "md5"

    def test_absent_options_are_omitted_not_null(self, config):
        params = assemble("get", config.merge({"cache_control": ""}), "k")

        assert set(params) == {"Bucket", "Key", "Expires"}
        assert None not in params.values()


class TestPutParams:
    def test_defaults(self, config):
        params = assemble(Operation.PUT, config, "public/a.txt", b"data")

        assert params == {
            "Bucket": "test-bucket",
            "Key": "public/a.txt",
            "Body": b"data",
            "ContentType": "binary/octet-stream",
        }

    def test_cache_control_omitted_when_not_supplied(self, config):
        params = assemble("put", config, "k", b"data")

        assert "CacheControl" not in params

    def test_optional_fields(self, config):
        opt = config.merge(
            {
                "content_type": "image/png",
                "cache_control": "max-age=60",
                "content_disposition": "inline",
                "expires": "2030-01-01T00:00:00Z",
                "metadata": {"owner": "u1"},
                "tagging": "a=b",
            }
        )

        params = assemble("put", opt, "k", b"data")

        assert params["ContentType"] == "image/png"
        assert params["CacheControl"] == "max-age=60"
        assert params["ContentDisposition"] == "inline"
        assert params["Expires"] == "2030-01-01T00:00:00Z"
        assert params["Metadata"] == {"owner": "u1"}
        assert params["Tagging"] == "a=b"

    def test_sse_fields_require_server_side_encryption_flag(self, config):
        opt = config.merge(
            {
                "SSECustomerAlgorithm": "AES256",
                "SSECustomerKey": "key",
                "SSECustomerKeyMD5": "md5",
                "SSEKMSKeyId": "kms",
            }
        )

        params = assemble("put", opt, "k", b"data")

        assert not {"SSECustomerAlgorithm", "SSECustomerKey", "SSECustomerKeyMD5", "SSEKMSKeyId"} & set(params)

    def test_sse_fields_attached_with_flag_but_not_server_side_encryption(self, config):
        opt = config.merge(
            {
                "serverSideEncryption": "AES256",
                "SSECustomerAlgorithm": "AES256",
                "SSECustomerKey": "key",
                "SSECustomerKeyMD5": "md5",
                "SSEKMSKeyId": "kms",
            }
        )

        params = assemble("put", opt, "k", b"data")

        assert params["SSECustomerAlgorithm"] == "AES256"
        assert params["SSECustomerKey"] == "key"
        assert params["SSECustomerKeyMD5"] == "md5"
        assert params["SSEKMSKeyId"] == "kms"
        assert "ServerSideEncryption" not in params

    def test_acl_independent_of_encryption_flag(self, config):
        params = assemble("put", config.merge({"acl": "public-read"}), "k", b"data")

        assert params["ACL"] == "public-read"
        assert list(params)[-1] == "ACL"

    def test_empty_body_is_kept(self, config):
        params = assemble("put", config, "k", b"")

        assert params["Body"] == b""


class TestRemoveAndListParams:
    def test_remove_has_only_bucket_and_key(self, config):
        opt = config.merge({"cache_control": "no-cache", "acl": "private"})

        assert assemble(Operation.REMOVE, opt, "k") == {"Bucket": "test-bucket", "Key": "k"}

    def test_list_with_max_keys(self, config):
        params = assemble(Operation.LIST, config.merge({"maxKeys": 10}), "public/photos/")

        assert params == {"Bucket": "test-bucket", "Prefix": "public/photos/", "MaxKeys": 10}

    def test_list_without_max_keys(self, config):
        params = assemble(Operation.LIST, config, "public/")

        assert "MaxKeys" not in params


class TestAllowList:
    def test_unknown_config_keys_never_reach_params(self, config):
        opt = config.merge({"Bucket": "evil", "ServerSideEncryption": "aws:kms", "GrantFullControl": "x"})

        for operation in Operation:
            params = assemble(operation, opt, "k", b"data")
            assert params["Bucket"] == "test-bucket"
            assert "ServerSideEncryption" not in params
            assert "GrantFullControl" not in params

    @pytest.mark.parametrize("operation", list(Operation))
    def test_missing_bucket_is_a_configuration_error(self, operation):
        with pytest.raises(ConfigurationError, match="No bucket"):
            assemble(operation, StorageConfig(), "k", b"data")
