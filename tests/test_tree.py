import random

import pytest

from bplusfile.blockfile import BlockManager
from bplusfile.nodes import MAX_RECORDS_PER_BLOCK, DataNode, IndexNode
from bplusfile.record import Record
from bplusfile.store import TreeError
from bplusfile.tree import BPlusTree


@pytest.fixture
def manager():
    with BlockManager() as mgr:
        yield mgr


@pytest.fixture
def tree(manager, tmp_path):
    tree = BPlusTree.create(manager, tmp_path / "data.db")
    yield tree
    tree.close()


def _record(key):
    return Record(key, "Anna", "Georgiou", "Patra")


def _leaf_chain(tree):
    block_num = tree.info.root_block
    node = tree.read_node(block_num)
    while isinstance(node, IndexNode):
        block_num = node.first_child
        node = tree.read_node(block_num)
    leaves = []
    while True:
        leaves.append((block_num, node))
        if node.next_block == -1:
            return leaves
        block_num = node.next_block
        node = tree.read_node(block_num)


def test_insert_then_get_returns_record(tree):
    record = Record(42, "Maria", "Nikolaou", "Volos")
    tree.insert(record)
    assert tree.get(42) == record
    assert tree.get(43) is None


def test_duplicate_id_is_rejected_and_original_kept(tree):
    original = Record(7, "Sofia", "Dimitriou", "Rodos")
    tree.insert(original)
    with pytest.raises(TreeError):
        tree.insert(Record(7, "Petros", "Mavromatis", "Chania"))
    assert tree.get(7) == original


def test_root_leaf_is_used_until_full(tree):
    root = tree.info.root_block
    for key in range(MAX_RECORDS_PER_BLOCK):
        tree.insert(_record(key))
    assert tree.info.root_block == root
    node = tree.read_node(root)
    assert isinstance(node, DataNode)
    assert [r.id for r in node.records] == list(range(MAX_RECORDS_PER_BLOCK))


def test_first_split_creates_index_root(tree):
    old_root = tree.info.root_block
    keys = list(range(MAX_RECORDS_PER_BLOCK + 1))
    for key in reversed(keys):
        tree.insert(_record(key))

    root = tree.read_node(tree.info.root_block)
    assert isinstance(root, IndexNode)
    assert root.first_child == old_root
    assert len(root.entries) == 1
    separator, right_num = root.entries[0]

    left = tree.read_node(old_root)
    right = tree.read_node(right_num)
    assert left.next_block == right_num
    assert left.parent == tree.info.root_block
    assert right.parent == tree.info.root_block
    assert len(left.records) + len(right.records) == len(keys)
    assert all(r.id <= separator for r in left.records)
    assert all(r.id > separator for r in right.records)
    assert separator == keys[len(keys) // 2]


def test_many_inserts_are_all_found(tree):
    rng = random.Random(42)
    keys = rng.sample(range(10_000), 200)
    for key in keys:
        tree.insert(_record(key))
    for key in keys:
        assert tree.get(key) == _record(key)


def test_leaf_chain_is_sorted_and_complete(tree):
    rng = random.Random(7)
    keys = rng.sample(range(5_000), 150)
    for key in keys:
        tree.insert(_record(key))
    chained = [r.id for _, leaf in _leaf_chain(tree) for r in leaf.records]
    assert chained == sorted(keys)
    for _, leaf in _leaf_chain(tree):
        assert 0 < len(leaf.records) <= MAX_RECORDS_PER_BLOCK


def test_index_children_point_back_to_root(tree):
    for key in range(100):
        tree.insert(_record(key))
    root_num = tree.info.root_block
    root = tree.read_node(root_num)
    assert isinstance(root, IndexNode)
    assert root.keys == sorted(root.keys)
    children = [root.first_child, *(block for _, block in root.entries)]
    for child in children:
        assert tree.read_node(child).parent == root_num


def test_tree_survives_close_and_reopen(manager, tmp_path):
    path = tmp_path / "persist.db"
    keys = list(range(0, 60, 3))
    with BPlusTree.create(manager, path) as tree:
        for key in keys:
            tree.insert(_record(key))
        root = tree.info.root_block
    with BPlusTree.open(manager, path) as reopened:
        assert reopened.info.root_block == root
        for key in keys:
            assert reopened.get(key) == _record(key)
        assert reopened.get(1) is None


def test_empty_index_root_is_seeded_with_two_leaves(tree):
    root_num = tree.info.root_block
    tree.write_node(root_num, IndexNode())
    record = Record(500, "Eleni", "Karagiannis", "Larisa")
    tree.insert(record)

    root = tree.read_node(root_num)
    assert isinstance(root, IndexNode)
    assert root.keys == [500]
    left = tree.read_node(root.first_child)
    right = tree.read_node(root.entries[0][1])
    assert left.next_block == root.entries[0][1]
    assert left.parent == root_num
    assert right.parent == root_num
    assert left.records == [record]
    assert right.records == []
    assert tree.get(500) == record
    tree.insert(_record(900))
    assert tree.read_node(root.entries[0][1]).records == [_record(900)]
    assert tree.get(900) == _record(900)