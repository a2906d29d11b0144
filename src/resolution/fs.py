"""Filesystem capability used by the resolution engine.

The engine never touches the filesystem itself. Its steps are generators that
yield :class:`FsOp` requests and receive the answers back, so one algorithm
serves both the blocking driver (:func:`run_sync`) and the asyncio driver
(:func:`run_async`). Both drivers issue the same requests in the same order.
"""
from __future__ import annotations

import asyncio
import logging
import os
import stat
from typing import Any, Callable, Dict, Generator, NamedTuple, Optional, Protocol, TypeVar

from .paths import to_posix

logger = logging.getLogger(__name__)

T = TypeVar("T")

IS_FILE = "is_file"
IS_DIR = "is_dir"
MTIME = "mtime"
READ_TEXT = "read_text"
REALPATH = "realpath"


class FsOp(NamedTuple):
    """A single filesystem request."""

    kind: str
    path: str


Steps = Generator[FsOp, Any, T]


def _stat(path: str) -> Optional[os.stat_result]:
    try:
        return os.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        return None


def _is_file(path: str) -> bool:
    st = _stat(path)
    return st is not None and stat.S_ISREG(st.st_mode)


def _is_dir(path: str) -> bool:
    st = _stat(path)
    return st is not None and stat.S_ISDIR(st.st_mode)


def _mtime(path: str) -> Optional[int]:
    # only configuration files are probed this way; unreadable ones count as absent
    try:
        st = os.stat(path)
    except OSError as exc:
        if not isinstance(exc, (FileNotFoundError, NotADirectoryError)):
            logger.debug("Unable to stat %s: %s", path, exc)
        return None
    if not stat.S_ISREG(st.st_mode):
        return None
    return st.st_mtime_ns


def _read_text(path: str) -> Optional[str]:
    # unreadable configuration degrades to "absent"
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Unable to read %s: %s", path, exc)
        return None


def _realpath(path: str) -> str:
    return to_posix(os.path.realpath(path))


PRIMITIVES: Dict[str, Callable[[str], Any]] = {
    IS_FILE: _is_file,
    IS_DIR: _is_dir,
    MTIME: _mtime,
    READ_TEXT: _read_text,
    REALPATH: _realpath,
}


class FileSystem(Protocol):
    """Blocking filesystem capability."""

    def perform(self, op: FsOp) -> Any:
        """Answer one request."""
        ...


class AsyncFileSystem(Protocol):
    """Non-blocking filesystem capability."""

    async def perform(self, op: FsOp) -> Any:
        """Answer one request."""
        ...


class LocalFileSystem:
    """Blocking access to the local filesystem."""

    def perform(self, op: FsOp) -> Any:
        return PRIMITIVES[op.kind](op.path)

    def __repr__(self) -> str:
        return "LocalFileSystem()"


class AsyncLocalFileSystem:
    """Local filesystem access off the event loop, one worker-thread call per request."""

    async def perform(self, op: FsOp) -> Any:
        return await asyncio.to_thread(PRIMITIVES[op.kind], op.path)

    def __repr__(self) -> str:
        return "AsyncLocalFileSystem()"


def is_file(path: str) -> Steps[bool]:
    return (yield FsOp(IS_FILE, path))


def is_dir(path: str) -> Steps[bool]:
    return (yield FsOp(IS_DIR, path))


def mtime(path: str) -> Steps[Optional[int]]:
    return (yield FsOp(MTIME, path))


def read_text(path: str) -> Steps[Optional[str]]:
    return (yield FsOp(READ_TEXT, path))


def realpath(path: str) -> Steps[str]:
    return (yield FsOp(REALPATH, path))


def run_sync(steps: Steps[T], fs: Optional[FileSystem] = None) -> T:
    """Drive ``steps`` to completion with blocking filesystem calls."""
    fs = fs or LocalFileSystem()
    try:
        op = next(steps)
        while True:
            try:
                answer = fs.perform(op)
            except OSError as exc:
                op = steps.throw(exc)
            else:
                op = steps.send(answer)
    except StopIteration as stop:
        return stop.value


async def run_async(steps: Steps[T], fs: Optional[AsyncFileSystem] = None) -> T:
    """Drive ``steps`` to completion, awaiting each filesystem request."""
    fs = fs or AsyncLocalFileSystem()
    try:
        op = next(steps)
        while True:
            try:
                answer = await fs.perform(op)
            except OSError as exc:
                op = steps.throw(exc)
            else:
                op = steps.send(answer)
    except StopIteration as stop:
        return stop.value
