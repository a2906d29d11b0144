"""Tests for file probing and the filesystem step drivers."""

import asyncio
import os

import pytest

from resolution import fs
from resolution.errors import ErrorCode, ResolveError
from resolution.files import probe_candidates, resolve_file


class RecordingFileSystem(fs.LocalFileSystem):
    """Blocking filesystem that records every request."""

    def __init__(self):
        self.ops = []

    def perform(self, op):
        self.ops.append(op)
        return super().perform(op)


class AsyncRecordingFileSystem(fs.AsyncLocalFileSystem):
    """Asyncio filesystem that records every request."""

    def __init__(self):
        self.ops = []

    async def perform(self, op):
        self.ops.append(op)
        return await super().perform(op)


class FailingFileSystem:
    """Raises PermissionError for every request."""

    def perform(self, op):
        raise PermissionError(13, "Permission denied", op.path)


class TestResolveFile:
    """Test the fixed probe order."""

    def test_probe_order(self):
        """Test the candidate list for an extensionless path."""
        assert probe_candidates("/p/a") == [
            "/p/a", "/p/a.js", "/p/a.json", "/p/a.node",
            "/p/a/index.js", "/p/a/index.json", "/p/a/index.node",
        ]

    def test_exact_file_first(self, layout):
        """Test that an exact file wins over extensions."""
        layout.write("a")
        layout.write("a.js")
        assert fs.run_sync(resolve_file(layout.path("a"))) == layout.path("a")

    def test_js_before_json(self, layout):
        """Test .js preference over .json."""
        layout.write("a.js")
        layout.write("a.json")
        assert fs.run_sync(resolve_file(layout.path("a"))) == layout.path("a.js")

    def test_directory_index(self, layout):
        """Test index file lookup in a directory."""
        layout.write("dir/index.json")
        assert fs.run_sync(resolve_file(layout.path("dir"))) == layout.path("dir/index.json")

    def test_addon(self, layout):
        """Test .node extension probing."""
        layout.write("native.node")
        assert fs.run_sync(resolve_file(layout.path("native"))) == layout.path("native.node")

    def test_directory_is_not_a_file(self, layout):
        """Test that a directory never matches the exact probe."""
        layout.mkdir("a")
        layout.write("a.js")
        assert fs.run_sync(resolve_file(layout.path("a"))) == layout.path("a.js")

    def test_trailing_separator_not_probed(self, layout):
        """Test that a trailing separator only checks the directory."""
        layout.write("dir/index.js")
        recorder = RecordingFileSystem()
        assert fs.run_sync(resolve_file(layout.path("dir") + "/"), recorder) == layout.path("dir") + "/"
        assert recorder.ops == [fs.FsOp(fs.IS_DIR, layout.path("dir"))]

    def test_trailing_separator_missing_directory(self, layout):
        """Test a trailing separator on a missing directory."""
        with pytest.raises(ResolveError) as excinfo:
            fs.run_sync(resolve_file(layout.path("missing") + "/"))
        assert excinfo.value.kind is ErrorCode.MODULE_NOT_FOUND

    def test_not_found(self, layout):
        """Test the not-found error names the parent."""
        with pytest.raises(ResolveError) as excinfo:
            fs.run_sync(resolve_file(layout.path("nothing"), "/parent.js"))
        assert excinfo.value.kind is ErrorCode.MODULE_NOT_FOUND
        assert "/parent.js" in excinfo.value.message


class TestDrivers:
    """Test that both drivers run the same steps."""

    def test_same_requests_in_same_order(self, layout):
        """Test identical requests from both drivers."""
        layout.write("dir/index.node")
        sync_fs = RecordingFileSystem()
        async_fs = AsyncRecordingFileSystem()
        sync_result = fs.run_sync(resolve_file(layout.path("dir")), sync_fs)
        async_result = asyncio.run(fs.run_async(resolve_file(layout.path("dir")), async_fs))
        assert sync_result == async_result == layout.path("dir/index.node")
        assert sync_fs.ops == async_fs.ops
        assert len(sync_fs.ops) == 7

    def test_unexpected_os_errors_propagate(self, layout):
        """Test that driver errors reach the caller."""
        with pytest.raises(PermissionError):
            fs.run_sync(resolve_file(layout.path("a")), FailingFileSystem())

    def test_mtime_of_missing_file(self, layout):
        """Test mtime of an absent file."""
        assert fs.run_sync(fs.mtime(layout.path("nope"))) is None

    def test_mtime_of_directory(self, layout):
        """Test mtime of a directory."""
        layout.mkdir("d")
        assert fs.run_sync(fs.mtime(layout.path("d"))) is None

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="requires symlink support")
    def test_mtime_of_symlink_loop(self, layout):
        """A config file that cannot be stat'ed counts as absent."""
        looped = layout.path("package.json")
        os.symlink(looped, looped)
        assert fs.run_sync(fs.mtime(looped)) is None
        assert asyncio.run(fs.run_async(fs.mtime(looped))) is None

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="requires symlink support")
    def test_is_file_of_symlink_loop_propagates(self, layout):
        """Probing a module path still surfaces unexpected OS errors."""
        looped = layout.path("a.js")
        os.symlink(looped, looped)
        with pytest.raises(OSError):
            fs.run_sync(fs.is_file(looped))

    def test_read_text(self, layout):
        """Test reading present and absent files."""
        layout.write("f.txt", "hello")
        assert fs.run_sync(fs.read_text(layout.path("f.txt"))) == "hello"
        assert asyncio.run(fs.run_async(fs.read_text(layout.path("missing.txt")))) is None
