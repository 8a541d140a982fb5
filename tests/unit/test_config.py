"""Tests for configuration loading."""

import pytest

from s3tree.common.config import TransferConfig


class TestTransferConfig:
    def test_from_env_loads_all_values(self):
        config = TransferConfig.from_env()
        assert config.source_path == "s3://bucket0/dir1/dir2"
        assert config.destination_path == "s3://bucket1/subdir"
        assert config.delete_paths == ("s3://bucket0/tmp/", "s3://bucket0/staging/run-*")
        assert config.recursive is True
        assert config.overwrite is False
        assert config.region == "us-east-1"

    def test_client_settings(self, monkeypatch):
        monkeypatch.setenv("ROLE_ARN", "arn:aws:iam::111111111111:role/Copier")
        monkeypatch.setenv("EXTERNAL_ID", "ext-1")
        monkeypatch.setenv("S3_ENDPOINT_URL", "http://localhost:9000")
        monkeypatch.setenv("READ_TIMEOUT", "120")
        monkeypatch.setenv("KMS_KEY_ID", "alias/data")
        monkeypatch.setenv("BUCKET_LOCATION", "eu-west-1")

        config = TransferConfig.from_env()
        assert config.role_arn == "arn:aws:iam::111111111111:role/Copier"
        assert config.external_id == "ext-1"
        assert config.endpoint_url == "http://localhost:9000"
        assert config.read_timeout == 120
        assert config.kms_key_id == "alias/data"
        assert config.bucket_location == "eu-west-1"

    @pytest.mark.parametrize(
        "raw, expected",
        [("true", True), ("TRUE", True), ("1", True), ("yes", True), ("no", False), ("0", False)],
    )
    def test_boolean_flags(self, monkeypatch, raw, expected):
        monkeypatch.setenv("OVERWRITE", raw)
        assert TransferConfig.from_env().overwrite is expected

    def test_defaults(self, monkeypatch):
        for name in (
            "SOURCE_PATH",
            "DESTINATION_PATH",
            "DELETE_PATHS",
            "RECURSIVE",
            "OVERWRITE",
            "EXTERNAL_ID",
            "READ_TIMEOUT",
            "MULTIPART_THRESHOLD_BYTES",
            "MULTIPART_CHUNK_SIZE_BYTES",
            "MAX_RETRY_ATTEMPTS",
        ):
            monkeypatch.delenv(name, raising=False)

        config = TransferConfig.from_env()
        assert config.source_path == ""
        assert config.delete_paths == ()
        assert config.recursive is False
        assert config.overwrite is False
        assert config.role_arn == ""
        assert config.read_timeout == 0
        assert config.multipart_threshold_bytes == 5 * 1024 * 1024 * 1024
        assert config.multipart_chunk_size_bytes == 100 * 1024 * 1024
        assert config.max_retry_attempts == 5
        assert config.retry_base_delay == 1.0
        assert config.retry_max_delay == 60.0

    def test_frozen_dataclass(self):
        config = TransferConfig.from_env()
        with pytest.raises(AttributeError):
            config.source_path = "modified"
