"""Paged block files with a pinned, write-back buffer pool."""

from __future__ import annotations

import enum
import os
from collections import OrderedDict
from dataclasses import dataclass
from typing import BinaryIO

BLOCK_SIZE = 512
BUFFER_SIZE = 100
MAX_OPEN_FILES = 100


class ReplacementAlgorithm(enum.Enum):
    """Policy used to pick an unpinned block to evict from a full buffer."""

    LRU = "lru"
    MRU = "mru"


class BlockFileError(Exception):
    """Raised when the block layer refuses an operation."""

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason


@dataclass
class _Frame:
    data: bytearray
    dirty: bool = False
    pins: int = 0


@dataclass
class _OpenFile:
    path: str
    handle: BinaryIO
    blocks: int


class Block:
    """A pinned handle on one block held in the buffer pool."""

    def __init__(self, fd: int, number: int, frame: _Frame) -> None:
        self.fd = fd
        self.number = number
        self._frame = frame
        self._pinned = True

    @property
    def data(self) -> bytearray:
        """The block's bytes; changes must be followed by set_dirty()."""
        return self._frame.data

    @property
    def pinned(self) -> bool:
        return self._pinned

    def set_dirty(self) -> None:
        """Mark the block as changed so it is written back to disk."""
        self._frame.dirty = True

    def unpin(self) -> None:
        """Release the block so the buffer pool may evict it."""
        if not self._pinned:
            raise BlockFileError("not_pinned", f"block {self.number} is not pinned")
        self._pinned = False
        self._frame.pins -= 1

    def __enter__(self) -> Block:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._pinned:
            self.unpin()


class BlockManager:
    """Opens block files and caches their blocks in a bounded buffer."""

    def __init__(
        self,
        algorithm: ReplacementAlgorithm = ReplacementAlgorithm.LRU,
        buffer_size: int = BUFFER_SIZE,
    ) -> None:
        if buffer_size < 1:
            raise ValueError("buffer_size must be at least 1")
        self.algorithm = ReplacementAlgorithm(algorithm)
        self.buffer_size = buffer_size
        self._files: dict[int, _OpenFile] = {}
        self._frames: OrderedDict[tuple[int, int], _Frame] = OrderedDict()

    def __enter__(self) -> BlockManager:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def create_file(self, path: str | os.PathLike) -> None:
        """Create a new, empty block file; fail if it already exists."""
        try:
            with open(path, "xb"):
                pass
        except FileExistsError:
            raise BlockFileError("file_exists", f"file {os.fspath(path)!r} already exists") from None

    def open_file(self, path: str | os.PathLike) -> int:
        """Open an existing block file and return its descriptor."""
        if len(self._files) >= MAX_OPEN_FILES:
            raise BlockFileError("open_files_limit", f"already {MAX_OPEN_FILES} files open")
        fd = next(n for n in range(MAX_OPEN_FILES) if n not in self._files)
        handle = open(path, "r+b")
        blocks = os.fstat(handle.fileno()).st_size // BLOCK_SIZE
        self._files[fd] = _OpenFile(os.fspath(path), handle, blocks)
        return fd

    def close_file(self, fd: int) -> None:
        """Write back the file's dirty blocks and close it."""
        open_file = self._file(fd)
        keys = [key for key in self._frames if key[0] == fd]
        if any(self._frames[key].pins for key in keys):
            raise BlockFileError("pinned_blocks", f"file {fd} still has pinned blocks")
        for key in keys:
            self._write_back(key, self._frames.pop(key))
        open_file.handle.close()
        del self._files[fd]

    def block_count(self, fd: int) -> int:
        """Number of blocks in the open file."""
        return self._file(fd).blocks

    def allocate_block(self, fd: int) -> Block:
        """Append a zeroed block to the file and return it pinned."""
        open_file = self._file(fd)
        self._make_room()
        number = open_file.blocks
        open_file.handle.seek(number * BLOCK_SIZE)
        open_file.handle.write(bytes(BLOCK_SIZE))
        open_file.handle.flush()
        open_file.blocks += 1
        frame = _Frame(bytearray(BLOCK_SIZE), pins=1)
        self._frames[(fd, number)] = frame
        return Block(fd, number, frame)

    def get_block(self, fd: int, block_num: int) -> Block:
        """Return block ``block_num`` of the file, pinned in the buffer."""
        open_file = self._file(fd)
        if not 0 <= block_num < open_file.blocks:
            raise BlockFileError(
                "invalid_block_number", f"block {block_num} does not exist in file {fd}"
            )
        key = (fd, block_num)
        frame = self._frames.get(key)
        if frame is None:
            self._make_room()
            open_file.handle.seek(block_num * BLOCK_SIZE)
            raw = open_file.handle.read(BLOCK_SIZE)
            frame = _Frame(bytearray(raw.ljust(BLOCK_SIZE, b"\0")))
            self._frames[key] = frame
        else:
            self._frames.move_to_end(key)
        frame.pins += 1
        return Block(fd, block_num, frame)

    def close(self) -> None:
        """Write every buffered block to disk and close all files."""
        for key, frame in self._frames.items():
            self._write_back(key, frame)
        self._frames.clear()
        for open_file in self._files.values():
            open_file.handle.close()
        self._files.clear()

    def _file(self, fd: int) -> _OpenFile:
        try:
            return self._files[fd]
        except KeyError:
            raise BlockFileError("invalid_file", f"descriptor {fd} is not an open file") from None

    def _make_room(self) -> None:
        if len(self._frames) < self.buffer_size:
            return
        order = iter(self._frames) if self.algorithm is ReplacementAlgorithm.LRU else reversed(self._frames)
        victim = next((key for key in order if self._frames[key].pins == 0), None)
        if victim is None:
            raise BlockFileError("full_memory", "buffer is full of pinned blocks")
        self._write_back(victim, self._frames.pop(victim))

    def _write_back(self, key: tuple[int, int], frame: _Frame) -> None:
        if not frame.dirty:
            return
        fd, number = key
        handle = self._files[fd].handle
        handle.seek(number * BLOCK_SIZE)
        handle.write(frame.data)
        handle.flush()
        frame.dirty = False