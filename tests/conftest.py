"""
Pytest configuration and fixtures for RotateTree tests.

Provides reusable fixtures for:
- Building trees from key sequences
- Checking tree invariants after mutations
"""

import random

import pytest

from RotateTree.BSTArray import BinarySearchTree
from RotateTree.RotateBSTArray import RotateBST
from RotateTree.AVLTreeArray import AVLTree


def build(tree_class, keys, size=4):
    """Insert `keys` in order into a fresh tree; each value is the key as a string."""
    tree = tree_class(size)
    for key in keys:
        tree.insert(key, str(key))
    return tree


def shape_of(tree, index=None):
    """Nested (key, left, right) tuples describing the topology of a tree."""
    if index is None:
        index = tree.root
    if index == 0:
        return None
    left, right, _, _ = tree.get_node(index)
    return (tree.get_key(index), shape_of(tree, left), shape_of(tree, right))


@pytest.fixture
def make_tree():
    """
    Fixture that returns a function building a tree from keys.

    Usage:
        avl = make_tree(AVLTree, [10, 20, 30])
    """
    return build


@pytest.fixture
def avl():
    return AVLTree(4)


@pytest.fixture
def rotate_bst():
    return RotateBST(4)


@pytest.fixture
def bst():
    return BinarySearchTree(4)


@pytest.fixture
def rng():
    """Seeded random generator so property-style tests are reproducible."""
    return random.Random(20200815)
