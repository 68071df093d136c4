"""Command that fills a B+ tree file with random records and looks some up."""

from __future__ import annotations

import argparse
import dataclasses
import os
import random
import sys
from typing import TextIO

from .blockfile import BlockFileError, BlockManager, ReplacementAlgorithm
from .record import Record, random_record
from .store import TreeError
from .tree import BPlusTree

SAMPLE_SIZE = 10
DEFAULT_PATH = "data.db"
DEFAULT_SEED = 1


def insert_entries(tree: BPlusTree, entry_number: int, rng: random.Random) -> list[Record]:
    """Insert random records until SAMPLE_SIZE of them have been sampled.

    Ids are drawn below ``entry_number * 10``; each inserted record is sampled
    with probability ``10 / entry_number``.  Records whose id is already stored
    are skipped by the tree but may still be sampled.
    """
    if entry_number < 1:
        raise ValueError("entry_number must be at least 1")
    sampled: list[Record] = []
    threshold = SAMPLE_SIZE / entry_number
    while len(sampled) < SAMPLE_SIZE:
        draw = rng.random()
        record = dataclasses.replace(random_record(rng), id=rng.randrange(entry_number * 10))
        try:
            tree.insert(record)
        except TreeError:
            pass
        if draw <= threshold:
            sampled.append(record)
    return sampled


def print_entries(tree: BPlusTree, sampled: list[Record], out: TextIO | None = None) -> None:
    """Write the sampled ids on one line, then the stored record for each."""
    out = out if out is not None else sys.stdout
    out.write("".join(f"{record.id} " for record in sampled) + "\n")
    for record in sampled:
        found = tree.get(record.id)
        out.write(f"{found}\n" if found is not None else f"{record.id}: not found\n")


def run(
    entry_number: int,
    path: str | os.PathLike = DEFAULT_PATH,
    seed: int | None = None,
    out: TextIO | None = None,
) -> list[Record]:
    """Create the tree file at ``path``, fill it, print the samples and close it."""
    if entry_number < 1:
        raise ValueError("entry_number must be at least 1")
    rng = random.Random(seed)
    manager = BlockManager(ReplacementAlgorithm.LRU)
    try:
        with BPlusTree.create(manager, path) as tree:
            sampled = insert_entries(tree, entry_number, rng)
            print_entries(tree, sampled, out)
    finally:
        manager.close()
    return sampled


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{text!r} is not an integer") from None
    if value < 1:
        raise argparse.ArgumentTypeError("the number of entries must be at least 1")
    return value


def main(argv: list[str] | None = None) -> int:
    """Entry point: ``bplusfile ENTRIES [--path FILE] [--seed N]``."""
    parser = argparse.ArgumentParser(
        prog="bplusfile",
        description="Insert random records into a new B+ tree file and look up a sample.",
    )
    parser.add_argument("entries", type=_positive_int, help="scale of the id range and sampling")
    parser.add_argument("--path", default=DEFAULT_PATH, help="tree file to create")
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED, help="random seed")
    args = parser.parse_args(argv)
    try:
        run(args.entries, args.path, args.seed, sys.stdout)
    except (BlockFileError, TreeError, OSError) as error:
        print(f"bplusfile: {error}", file=sys.stderr)
        return 1
    return 0