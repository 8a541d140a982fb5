"""Tests for CopyObjects Lambda handler."""

from unittest.mock import patch

import pytest

from s3tree.common.exceptions import InvalidPathError, OverwriteNotAllowedError
from s3tree.copy_objects.handler import handler

from conftest import keys, put, read


@pytest.fixture
def patched_client(tree):
    with patch("s3tree.common.s3_client.get_boto3_client", return_value=tree):
        yield tree


class TestCopyObjectsHandler:
    def test_copies_tree_from_environment(self, patched_client, mock_context):
        result = handler({}, mock_context)

        assert result["status"] == "SUCCESS"
        assert result["operation"] == "copy"
        assert result["source_path"] == "s3://bucket0/dir1/dir2"
        assert result["destination_path"] == "s3://bucket1/subdir"
        assert result["total_objects"] == 3
        assert result["total_size_bytes"] == len("top") + len("c-content") + len("x-content")
        assert {o["destination"] for o in result["objects"]} == {
            "s3://bucket1/subdir/top.txt",
            "s3://bucket1/subdir/a/x.txt",
            "s3://bucket1/subdir/a/b/c",
        }
        assert read(patched_client, "bucket1", "subdir/a/b/c") == "c-content"
        # source untouched
        assert "dir1/dir2/top.txt" in keys(patched_client, "bucket0")

    def test_event_overrides_and_creates_bucket(self, patched_client, mock_context):
        event = {
            "source_path": "s3://bucket0/dir1/*.txt",
            "destination_path": "s3://new-bucket/out/",
            "recursive": "false",
        }

        result = handler(event, mock_context)

        assert result["total_objects"] == 2
        assert keys(patched_client, "new-bucket") == {"out/dir2x.txt", "out/other.txt"}

    def test_overwrite_refused_before_any_copy(self, patched_client, mock_context):
        put(patched_client, "bucket1", "subdir/top.txt", body="existing")

        with pytest.raises(OverwriteNotAllowedError):
            handler({}, mock_context)

        assert keys(patched_client, "bucket1") == {"subdir/top.txt"}
        assert read(patched_client, "bucket1", "subdir/top.txt") == "existing"

    def test_overwrite_flag_from_event(self, patched_client, mock_context):
        put(patched_client, "bucket1", "subdir/top.txt", body="existing")

        result = handler({"overwrite": True}, mock_context)

        assert result["total_objects"] == 3
        assert read(patched_client, "bucket1", "subdir/top.txt") == "top"

    def test_invalid_path(self, patched_client, mock_context):
        with pytest.raises(InvalidPathError):
            handler({"source_path": "not-a-path"}, mock_context)

    def test_non_s3_destination_is_refused(self, patched_client, mock_context):
        with pytest.raises(InvalidPathError):
            handler({"destination_path": "gs://bucket1/subdir"}, mock_context)
        assert keys(patched_client, "bucket1") == set()
