# bplusfile

A B+ tree index that lives in a paged block file. Records with an integer
key and three short text fields are kept sorted in fixed-size data blocks.
Index blocks route lookups from the root down to the right leaf.

## Layers

- `bplusfile.blockfile` is the block file layer. `BlockManager` opens block
  files and keeps a bounded buffer of 512-byte blocks (100 by default). When
  the buffer is full it evicts an unpinned block, chosen by
  `ReplacementAlgorithm.LRU` or `ReplacementAlgorithm.MRU`. `allocate_block`
  and `get_block` return a pinned `Block`. Change its `data`, call
  `set_dirty()` so it is written back, and release it with `unpin()` (a
  `Block` is also a context manager that unpins on exit). Failures raise
  `BlockFileError`, whose `reason` names the kind of failure.
- `bplusfile.record` defines `Record` (`id`, `name`, `surname`, `city`), a
  frozen dataclass. `pack()` and `Record.unpack()` convert it to and from its
  fixed 60-byte form. Names must fit in 14 bytes, surnames and cities in 19.
  `random_record(rng)` builds a record with an id below 1000 and a random
  name, surname and city.
- `bplusfile.nodes` holds `DataNode` (a leaf of records sorted by id, linked
  to the next leaf) and `IndexNode` (a first child plus `(key, block)`
  entries). Both pack into one block. A full node raises `NodeFullError` on
  `insert`.
- `bplusfile.store` holds `TreeInfo`, the metadata kept in block 0, and
  `TreeFile`. `TreeFile.create` writes a header and an empty root leaf and
  returns the file open. `TreeFile.open` reopens an existing file. `get(key)`
  returns the stored record or `None`. `dump()` returns a listing of every
  node block. `close()` writes the metadata back. Malformed files raise
  `TreeError`.
- `bplusfile.tree` adds `BPlusTree.insert(record)`. It splits a full leaf in
  two and adds the new leaf to its parent index node, creating a new root
  the first time a root leaf splits.

## Installation

```
pip install .
```

## Using the tree

```python
import random

from bplusfile.blockfile import BlockManager, ReplacementAlgorithm
from bplusfile.record import Record, random_record
from bplusfile.store import TreeError
from bplusfile.tree import BPlusTree

with BlockManager(ReplacementAlgorithm.LRU, 100) as manager:
    with BPlusTree.create(manager, "data.db") as tree:
        tree.insert(Record(7, "Anna", "Georgiou", "Patra"))
        rng = random.Random(42)
        for _ in range(100):
            try:
                tree.insert(random_record(rng))
            except TreeError:
                pass  # that id is already stored

    with BPlusTree.open(manager, "data.db") as tree:
        print(tree.get(7))    # (7,Anna,Georgiou,Patra)
        print(tree.dump())    # listing of every node block
```

`create` fails with `BlockFileError` if the file already exists. Each key
can be stored only once. Inserting a key that is already in the tree raises
`TreeError`.

## Command line

```
bplusfile 1000
bplusfile 1000 --path other.db --seed 7
```

The command creates a new tree file (`data.db` unless `--path` is given),
which must not exist yet. It inserts random records with keys below ten
times the given number, skipping keys already stored. Each insertion is
sampled with probability `10 / N`, and this goes on until ten records have
been sampled. It then prints the sampled keys on one line and looks up each
one. For a key that is found it prints the stored record, and for any other
key it prints `<id>: not found`. The random seed defaults to 1. The command
exits with status 1 and a message if the file cannot be created or used.

## Limits

- Index nodes are never split. A data block holds 8 records and an index
  block 62 keys. Once the parent of a splitting leaf is full, the new leaf is
  linked only through the leaf chain. `get` does not find records that are
  stored in such a leaf.
- The tree supports insertion and lookup by key only. It has no deletion,
  no update and no range scan.
- `TreeInfo.tree_depth` is stored but never changed.
- There is no locking. One `BlockManager` should own a file at a time.