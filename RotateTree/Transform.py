import logging
import numpy as np
from numba import njit

from RotateTree.NodeLayout import (
    NIL,
    get_node,
    _get_left,
    _get_right,
    left_of,
    parent_of,
)
from RotateTree.Rotation import left_rotation, right_rotation


logger = logging.getLogger(__name__)

# Which way the chain hanging below a lockstep pair leans
RIGHT_VINE = np.uint64(0) # ascending chain of right children, unrolled by left rotations
LEFT_VINE  = np.uint64(1) # descending chain of left children, unrolled by right rotations



# ---------- JIT-Compiled Shape Transformation Kernels ----------
@njit
def tree_to_vine(
    tree: np.ndarray,
    root: np.uint64

) -> np.uint64:

    """
    Degenerate the tree into a right-leaning chain in ascending key order.

    At each node, right-rotate while it has a left child (climbing to the
    subtree root the rotation produced), then descend into the right child.

    Returns:
        np.uint64: Index of the new root (the smallest key).
    """

    root    = np.uint64(root)
    current = root

    while current != NIL:
        while left_of(tree, current) != NIL:
            _, root = right_rotation(tree, root, current)
            current = parent_of(tree, current)

        h, l    = get_node(tree, current)
        current = _get_right(h, l)

    return root

@njit
def rebuild(
    target:      np.ndarray,
    target_root: np.uint64,
    target_rank: np.ndarray,
    source:      np.ndarray,
    source_root: np.uint64,
    source_rank: np.ndarray,
    stack:       np.ndarray

) -> np.uint64:

    """
    Rotate a vine (`source`) into the exact shape of `target`.

    Both trees are walked in lockstep. Nodes are matched by in-order rank,
    which is equal for equal keys when both trees hold the same key set.
    At each pair the source subtree is a chain: a right-leaning chain is
    left-rotated, a left-leaning one right-rotated, until the expected node
    is on top. The matched node's right subtree is then a right-leaning
    chain and its left subtree a left-leaning chain.

    Args:
        target (np.ndarray): Packed rows of the reference tree (read only).
        target_root (np.uint64): Root index of the reference tree.
        target_rank (np.ndarray): Rank per row of the reference tree.
        source (np.ndarray): Packed rows of the tree being reshaped.
        source_root (np.uint64): Root index of the source vine.
        source_rank (np.ndarray): Rank per row of the source tree.
        stack (np.ndarray): Scratch array [n, 3] of (target, source, lean) triples.

    Returns:
        np.uint64: Index of the new source root.
    """

    root = np.uint64(source_root)
    if root == NIL:
        return root

    top = np.int64(0)
    stack[top, 0] = np.uint64(target_root)
    stack[top, 1] = root
    stack[top, 2] = RIGHT_VINE
    top += 1

    while top > 0:
        top -= 1
        t    = stack[top, 0]
        s    = stack[top, 1]
        lean = stack[top, 2]

        expected = target_rank[np.int64(t)]
        while source_rank[np.int64(s)] != expected:
            if lean == RIGHT_VINE:
                _, root = left_rotation(source, root, s)
            else:
                _, root = right_rotation(source, root, s)
            s = parent_of(source, s)

        h_s, l_s = get_node(source, s)
        h_t, l_t = get_node(target, t)

        if _get_right(h_s, l_s) != NIL:
            stack[top, 0] = _get_right(h_t, l_t)
            stack[top, 1] = _get_right(h_s, l_s)
            stack[top, 2] = RIGHT_VINE
            top += 1

        if _get_left(h_s, l_s) != NIL:
            stack[top, 0] = _get_left(h_t, l_t)
            stack[top, 1] = _get_left(h_s, l_s)
            stack[top, 2] = LEFT_VINE
            top += 1

    return root



# --------- Tree-level API ---------
def same_key_set(a, b) -> bool:
    """
    True iff both trees hold exactly the same keys (values and shape ignored).

    Every key of `a` is looked up in `b` and every key of `b` in `a`.
    """

    if len(a) != len(b):
        return False

    return (
        all(b.search(key) for key in a.keys())
        and all(a.search(key) for key in b.keys())
    )

def same_shape(a, b) -> bool:
    """
    True iff both trees have the same keys in the same topology.
    A BST's pre-order key sequence determines its shape.
    """
    return a.preorder_keys() == b.preorder_keys()

def transform(target, source) -> bool:
    """
    Reshape `source` (any BinarySearchTree) in place, using only rotations,
    until its topology matches `target`. Keys and values of `source` are
    untouched.

    Returns:
        bool: True if `source` now has `target`'s shape, False when the
              precondition fails (different key sets, or a source that
              refuses the target shape); nothing is modified in that case.
    """

    if target is source:
        return True

    if not same_key_set(target, source):
        logger.debug("Transform skipped: key sets differ")
        return False

    if not source._accepts_shape(target):
        logger.debug("Transform skipped: %s refuses the target shape", type(source).__name__)
        return False

    if same_shape(target, source):
        return True

    source.root = int(tree_to_vine(source.tree, source.root))
    logger.debug("Source flattened to a vine of %d nodes", len(source))

    stack       = np.zeros((len(source) + 1, 3), dtype=np.uint64)
    source.root = int(rebuild(
        target.tree,
        target.root,
        target.ranks(),
        source.tree,
        source.root,
        source.ranks(),
        stack
    ))

    source._after_reshape()
    logger.debug("Source rebuilt into target shape, root=%r", source.get_key(source.root))
    return True
