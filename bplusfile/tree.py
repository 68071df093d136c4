"""Record insertion into an on-disk B+ tree, splitting leaves as they fill."""

from __future__ import annotations

from bisect import bisect_left

from .nodes import DataNode, IndexNode, NodeFullError
from .record import Record
from .store import TreeError, TreeFile

_NO_BLOCK = -1


class BPlusTree(TreeFile):
    """A tree file that also accepts new records."""

    def insert(self, record: Record) -> None:
        """Insert ``record``; raise TreeError if its id is already stored."""
        block_num = self.info.root_block
        visited: set[int] = set()
        while True:
            if block_num in visited:
                raise TreeError(f"tree traversal loops back to block {block_num}")
            node = self.read_node(block_num)
            if isinstance(node, DataNode):
                self._insert_into_leaf(block_num, node, record)
                return
            if not node.entries:
                self._seed_empty_index(block_num, node, record.id)
                continue
            visited.add(block_num)
            block_num = node.child_for(record.id)

    def _insert_into_leaf(self, block_num: int, leaf: DataNode, record: Record) -> None:
        if any(stored.id == record.id for stored in leaf.records):
            raise TreeError(f"a record with id {record.id} already exists")
        try:
            leaf.insert(record, self.info.max_records)
        except NodeFullError:
            self._split_leaf(block_num, leaf, record)
        else:
            self.write_node(block_num, leaf)

    def _split_leaf(self, block_num: int, leaf: DataNode, record: Record) -> None:
        records = sorted([*leaf.records, record], key=lambda stored: stored.id)
        middle = records[len(records) // 2].id

        right = DataNode(
            records=[stored for stored in records if stored.id > middle],
            next_block=leaf.next_block,
            parent=leaf.parent,
        )
        right_num = self._allocate(right)
        leaf.records = [stored for stored in records if stored.id <= middle]
        leaf.next_block = right_num

        if leaf.parent == _NO_BLOCK:
            root = IndexNode(first_child=block_num, entries=[(middle, right_num)], parent=_NO_BLOCK)
            root_num = self._allocate(root)
            self.info.root_block = root_num
            leaf.parent = right.parent = root_num
            self.write_node(right_num, right)
        else:
            self._insert_into_parent(leaf.parent, middle, right_num)
        self.write_node(block_num, leaf)

    def _insert_into_parent(self, parent_num: int, key: int, right_num: int) -> None:
        parent = self.read_node(parent_num)
        if not isinstance(parent, IndexNode):
            raise TreeError(f"parent block {parent_num} is not an index node")
        # A full parent is left as it is: the new leaf stays reachable only
        # through the leaf chain.
        if len(parent.entries) >= self.info.max_pointers:
            return
        position = bisect_left(parent.keys, key)
        parent.entries.insert(position, (key, right_num))
        self.write_node(parent_num, parent)

    def _seed_empty_index(self, block_num: int, node: IndexNode, key: int) -> None:
        left = DataNode(next_block=_NO_BLOCK, parent=block_num)
        left_num = self._allocate(left)
        right_num = self._allocate(DataNode(next_block=_NO_BLOCK, parent=block_num))
        left.next_block = right_num
        self.write_node(left_num, left)

        node.first_child = left_num
        node.entries = [(key, right_num)]
        self.write_node(block_num, node)