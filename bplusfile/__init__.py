"""A disk-based B+ tree of fixed-size records stored in a paged block file."""

__version__ = "0.1.0"
__all__ = ["blockfile", "record", "nodes", "store", "tree", "cli"]