"""B+ tree files: header metadata, node storage and lookups."""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass

from .blockfile import BLOCK_SIZE, BlockManager
from .nodes import (
    MAX_POINTERS_PER_BLOCK,
    MAX_RECORDS_PER_BLOCK,
    DataNode,
    IndexNode,
    is_index_block,
)
from .record import Record

_INFO = struct.Struct("<iiiiH")
_HEADER_BLOCK = 0
_SEPARATOR = "=" * 52 + "\n"

Node = DataNode | IndexNode


class TreeError(Exception):
    """Raised when a B+ tree file is malformed or an operation on it fails."""


@dataclass
class TreeInfo:
    """Metadata kept in the header block of a B+ tree file."""

    max_records: int = MAX_RECORDS_PER_BLOCK
    max_pointers: int = MAX_POINTERS_PER_BLOCK
    tree_depth: int = 1
    file_name: str = ""
    root_block: int = 1

    def pack(self) -> bytes:
        """Encode the metadata as one header block."""
        name = self.file_name.encode("utf-8")
        if len(name) > BLOCK_SIZE - _INFO.size:
            raise ValueError(f"file name {self.file_name!r} is too long for the header")
        body = _INFO.pack(
            self.max_records, self.max_pointers, self.tree_depth, self.root_block, len(name)
        )
        return (body + name).ljust(BLOCK_SIZE, b"\0")

    @classmethod
    def unpack(cls, data: bytes) -> TreeInfo:
        """Decode the metadata from header block bytes."""
        if len(data) < _INFO.size:
            raise ValueError(f"need at least {_INFO.size} bytes, got {len(data)}")
        max_records, max_pointers, depth, root, name_len = _INFO.unpack_from(data)
        raw_name = bytes(data[_INFO.size : _INFO.size + name_len])
        if len(raw_name) != name_len:
            raise ValueError("header is truncated")
        return cls(max_records, max_pointers, depth, raw_name.decode("utf-8", "replace"), root)


class TreeFile:
    """An open B+ tree file whose blocks live in a BlockManager."""

    def __init__(self, manager: BlockManager, fd: int, info: TreeInfo, path: str) -> None:
        self.manager = manager
        self.fd = fd
        self.info = info
        self.path = path
        self._closed = False

    @classmethod
    def create(cls, manager: BlockManager, path: str | os.PathLike) -> TreeFile:
        """Create an empty tree file (header plus an empty root leaf) and open it."""
        manager.create_file(path)
        fd = manager.open_file(path)
        try:
            info = TreeInfo(file_name=os.fspath(path))
            with manager.allocate_block(fd) as header:
                header.data[:] = info.pack()
                header.set_dirty()
            with manager.allocate_block(fd) as root:
                root.data[:] = DataNode().pack()
                root.set_dirty()
                info.root_block = root.number
            with manager.get_block(fd, _HEADER_BLOCK) as header:
                header.data[:] = info.pack()
                header.set_dirty()
        finally:
            manager.close_file(fd)
        return cls.open(manager, path)

    @classmethod
    def open(cls, manager: BlockManager, path: str | os.PathLike) -> TreeFile:
        """Open an existing tree file and load its metadata."""
        fd = manager.open_file(path)
        try:
            if manager.block_count(fd) < 2:
                raise TreeError(f"{os.fspath(path)!r} is not a B+ tree file")
            with manager.get_block(fd, _HEADER_BLOCK) as header:
                try:
                    info = TreeInfo.unpack(header.data)
                except ValueError as error:
                    raise TreeError(f"corrupt header: {error}") from None
        except BaseException:
            manager.close_file(fd)
            raise
        return cls(manager, fd, info, os.fspath(path))

    def close(self) -> None:
        """Write the metadata back to the header and close the file."""
        if self._closed:
            return
        with self.manager.get_block(self.fd, _HEADER_BLOCK) as header:
            header.data[:] = self.info.pack()
            header.set_dirty()
        self.manager.close_file(self.fd)
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> TreeFile:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def block_count(self) -> int:
        """Number of blocks in the file, header included."""
        return self.manager.block_count(self.fd)

    def read_node(self, block_num: int) -> Node:
        """Load the data or index node stored in ``block_num``."""
        self._check_node_block(block_num)
        with self.manager.get_block(self.fd, block_num) as block:
            data = bytes(block.data)
        try:
            return IndexNode.unpack(data) if is_index_block(data) else DataNode.unpack(data)
        except ValueError as error:
            raise TreeError(f"block {block_num}: {error}") from None

    def write_node(self, block_num: int, node: Node) -> None:
        """Store ``node`` in the existing block ``block_num``."""
        self._check_node_block(block_num)
        with self.manager.get_block(self.fd, block_num) as block:
            block.data[:] = node.pack()
            block.set_dirty()

    def get(self, key: int) -> Record | None:
        """Return the record with id ``key``, or None if there is none."""
        block_num = self.info.root_block
        for _ in range(self.block_count()):
            node = self.read_node(block_num)
            if isinstance(node, DataNode):
                return next((record for record in node.records if record.id == key), None)
            try:
                block_num = node.child_for(key)
            except LookupError:
                raise TreeError(f"index block {block_num} has no keys") from None
        raise TreeError("tree traversal does not reach a data node")

    def __contains__(self, key: int) -> bool:
        return self.get(key) is not None

    def dump(self) -> str:
        """Listing of every node block in file order."""
        parts = []
        for block_num in range(1, self.block_count()):
            parts.append(_SEPARATOR)
            parts.append(self.read_node(block_num).format(block_num))
        parts.append(_SEPARATOR)
        return "".join(parts)

    def _allocate(self, node: Node) -> int:
        with self.manager.allocate_block(self.fd) as block:
            block.data[:] = node.pack()
            block.set_dirty()
            return block.number

    def _check_node_block(self, block_num: int) -> None:
        if block_num == _HEADER_BLOCK:
            raise TreeError("block 0 holds the header, not a node")
        if not 0 < block_num < self.block_count():
            raise TreeError(f"block {block_num} does not exist")