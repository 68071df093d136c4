"""Data (leaf) and index (inner) nodes of the on-disk B+ tree."""

from __future__ import annotations

import struct
from bisect import bisect_left
from dataclasses import dataclass, field

from .blockfile import BLOCK_SIZE
from .record import RECORD_SIZE, Record

_HEADER = struct.Struct("<iiii")
_ENTRY = struct.Struct("<ii")
_FLAG = struct.Struct("<i")
_INT_SIZE = 4

MAX_RECORDS_PER_BLOCK = (BLOCK_SIZE - _INT_SIZE * 3) // RECORD_SIZE
MAX_POINTERS_PER_BLOCK = (BLOCK_SIZE - _INT_SIZE * 3) // _ENTRY.size


class NodeFullError(Exception):
    """Raised when inserting into a node that has no free slot."""


def is_index_block(data: bytes) -> bool:
    """Whether the block bytes hold an index node rather than a data node."""
    return _FLAG.unpack_from(data)[0] != 0


@dataclass
class DataNode:
    """A leaf holding records sorted by id, linked to the next leaf."""

    records: list[Record] = field(default_factory=list)
    next_block: int = -1
    parent: int = -1

    def insert(self, record: Record, max_records: int = MAX_RECORDS_PER_BLOCK) -> None:
        """Insert ``record`` in id order; raise NodeFullError if full."""
        if len(self.records) >= max_records:
            raise NodeFullError(f"data node already holds {len(self.records)} records")
        position = bisect_left(self.records, record.id, key=lambda r: r.id)
        self.records.insert(position, record)

    def pack(self) -> bytes:
        """Encode the node as one block."""
        if len(self.records) > MAX_RECORDS_PER_BLOCK:
            raise ValueError("too many records for one block")
        body = _HEADER.pack(0, len(self.records), self.next_block, self.parent)
        body += b"".join(record.pack() for record in self.records)
        return body.ljust(BLOCK_SIZE, b"\0")

    @classmethod
    def unpack(cls, data: bytes) -> DataNode:
        """Decode a data node from block bytes."""
        flag, count, next_block, parent = _HEADER.unpack_from(data)
        if flag != 0:
            raise ValueError("block holds an index node")
        if not 0 <= count <= MAX_RECORDS_PER_BLOCK:
            raise ValueError(f"corrupt record count {count}")
        offsets = range(_HEADER.size, _HEADER.size + count * RECORD_SIZE, RECORD_SIZE)
        records = [Record.unpack(data[offset : offset + RECORD_SIZE]) for offset in offsets]
        return cls(records, next_block, parent)

    def format(self, block_number: int) -> str:
        """Human-readable listing of the node and its records."""
        lines = [f" * Data Block: {block_number}, Parent: {self.parent}, Next: {self.next_block} \n"]
        lines.extend(
            f" {block_number}/{position} {record}\n"
            for position, record in enumerate(self.records, start=1)
        )
        return "".join(lines)


@dataclass
class IndexNode:
    """An inner node: ``first_child`` holds keys up to the first key,
    each entry's block holds keys above that entry's key."""

    first_child: int = -1
    entries: list[tuple[int, int]] = field(default_factory=list)
    parent: int = -1

    @property
    def keys(self) -> list[int]:
        return [key for key, _ in self.entries]

    def insert(
        self,
        key: int,
        left_block: int,
        right_block: int,
        max_pointers: int = MAX_POINTERS_PER_BLOCK,
    ) -> None:
        """Insert ``key`` pointing right to ``right_block``.

        When the key becomes the smallest, ``left_block`` becomes the first child.
        """
        if len(self.entries) >= max_pointers:
            raise NodeFullError(f"index node already holds {len(self.entries)} keys")
        position = bisect_left(self.keys, key)
        if position == 0:
            self.first_child = left_block
        self.entries.insert(position, (key, right_block))

    def child_for(self, key: int) -> int:
        """Block number of the child to descend into for ``key``."""
        if not self.entries:
            raise LookupError("index node has no keys")
        position = bisect_left(self.keys, key)
        if position == 0:
            return self.first_child
        return self.entries[position - 1][1]

    def pack(self) -> bytes:
        """Encode the node as one block."""
        if len(self.entries) > MAX_POINTERS_PER_BLOCK:
            raise ValueError("too many keys for one block")
        body = _HEADER.pack(1, len(self.entries), self.first_child, self.parent)
        body += b"".join(_ENTRY.pack(key, block) for key, block in self.entries)
        return body.ljust(BLOCK_SIZE, b"\0")

    @classmethod
    def unpack(cls, data: bytes) -> IndexNode:
        """Decode an index node from block bytes."""
        flag, count, first_child, parent = _HEADER.unpack_from(data)
        if flag == 0:
            raise ValueError("block holds a data node")
        if not 0 <= count <= MAX_POINTERS_PER_BLOCK:
            raise ValueError(f"corrupt key count {count}")
        entries = [
            _ENTRY.unpack_from(data, _HEADER.size + n * _ENTRY.size) for n in range(count)
        ]
        return cls(first_child, entries, parent)

    def format(self, block_number: int) -> str:
        """Human-readable listing of the node's keys and children."""
        parts = [
            f" * Inner Block: {block_number}, Parent: {self.parent} \n",
            f" {self.first_child} ",
        ]
        parts.extend(f" [#{key}] {block} " for key, block in self.entries)
        parts.append("\n")
        return "".join(parts)