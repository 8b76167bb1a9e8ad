"""
Core classes and functions used internally by *sequentia* to sort sequences.

These will usually not be directly used by end-users, but are documented here to
provide a complete overview of the ordering engine: a chain of :class:`.SortKey`
objects describes a multi-level sort order, :func:`.compute_keys` evaluates the
keys of buffered elements, and :func:`.sort_indices` derives the stable sort
permutation.
"""

from ._comparer import *
from ._key import *
from ._sorter import *
