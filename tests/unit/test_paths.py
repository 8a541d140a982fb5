"""Tests for the path model."""

import pytest

from s3tree.common.exceptions import InvalidPathError
from s3tree.common.paths import ObjectRef, PathSpec, append, flip_trailing_slash


class TestPathSpec:
    def test_parses_bucket_and_key(self):
        path = PathSpec.from_uri("s3://bucket0/dir1/dir2/file.txt")
        assert path.bucket == "bucket0"
        assert path.key == "dir1/dir2/file.txt"
        assert path.scheme == "s3"
        assert not path.is_bucket_root

    @pytest.mark.parametrize("uri", ["s3://bucket0", "s3://bucket0/"])
    def test_bucket_root(self, uri):
        path = PathSpec.from_uri(uri)
        assert path.bucket == "bucket0"
        assert path.key == ""
        assert path.is_bucket_root

    def test_trailing_slash_is_kept(self):
        path = PathSpec.from_uri("s3://bucket0/subdir/")
        assert path.key == "subdir/"
        assert path.ends_with_slash

    def test_other_schemes_are_accepted(self):
        path = PathSpec.from_uri("gs://bucket0/a")
        assert path.scheme == "gs"
        assert path.uri == "gs://bucket0/a"

    @pytest.mark.parametrize(
        "uri",
        ["", "bucket0/key", "s3:/bucket0/key", "s3://", "s3:///key", "s3://bad bucket/key"],
    )
    def test_malformed_paths_raise(self, uri):
        with pytest.raises(InvalidPathError):
            PathSpec.from_uri(uri)

    def test_equality_and_hashing(self):
        a = PathSpec.from_uri("s3://b/k")
        b = PathSpec.from_uri("s3://b/k")
        assert a == b
        assert len({a, b}) == 1

    def test_with_key(self):
        path = PathSpec.from_uri("s3://b/pattern/*")
        assert path.with_key("pattern/x").uri == "s3://b/pattern/x"


class TestObjectRef:
    def test_placeholder(self):
        assert ObjectRef("b", "dir/").is_placeholder
        assert not ObjectRef("b", "dir/file").is_placeholder

    def test_equality_ignores_listing_details(self):
        assert ObjectRef("b", "k", size=1, etag='"x"') == ObjectRef("b", "k", size=2)


class TestAppend:
    @pytest.mark.parametrize(
        "base, part, expected",
        [
            ("subdir", "dir2", "subdir/dir2"),
            ("subdir/", "dir2", "subdir/dir2"),
            ("subdir", "/dir2", "subdir/dir2"),
            ("subdir/", "/dir2", "subdir/dir2"),
            ("", "x", "x"),
            ("", "/x", "/x"),
            ("subdir", "", "subdir"),
            ("subdir/dir2", "/a/b/c", "subdir/dir2/a/b/c"),
        ],
    )
    def test_single_separator_at_join(self, base, part, expected):
        assert append(base, part) == expected


class TestFlipTrailingSlash:
    def test_adds_and_removes(self):
        assert flip_trailing_slash("subdir") == "subdir/"
        assert flip_trailing_slash("subdir/") == "subdir"
