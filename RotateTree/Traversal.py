import numpy as np
from numba import njit

from RotateTree.NodeLayout import (
    NIL,
    ONE,
    get_node,
    _get_left,
    _get_right,
    _get_parent,
    left_of,
    right_of,
    parent_of,
    height_of,
    set_height,
)



# ---------- JIT-Compiled Iterative Traversals ----------
@njit
def preorder_traversal( # VLR
    tree:  np.ndarray,
    root:  np.uint64,
    order: np.ndarray,
    stack: np.ndarray

) -> np.int64:

    """
    Write the indices of the tree in pre-order (node, left, right) into `order`.

    Both `order` and `stack` must hold at least as many slots as the tree
    has nodes. Uses an explicit stack, so depth is unbounded.

    Returns:
        np.int64: number of indices written.
    """

    count = np.int64(0)
    root  = np.uint64(root)
    if root == NIL:
        return count

    top        = np.int64(0)
    stack[top] = root
    top += 1

    while top > 0:
        top -= 1
        index        = stack[top]
        order[count] = index
        count += 1

        h, l  = get_node(tree, index)
        left  = _get_left(h, l)
        right = _get_right(h, l)

        # Right first so that the left subtree is popped first
        if right != NIL:
            stack[top] = right
            top += 1
        if left != NIL:
            stack[top] = left
            top += 1

    return count

@njit
def postorder_traversal( # LRV
    tree:  np.ndarray,
    root:  np.uint64,
    order: np.ndarray,
    stack: np.ndarray

) -> np.int64:

    """
    Write the indices of the tree in post-order (left, right, node) into `order`.

    Every child precedes its parent, so walking `order` front to back is a
    bottom-up pass. Built as the reverse of a (node, right, left) walk.

    Returns:
        np.int64: number of indices written.
    """

    count = np.int64(0)
    root  = np.uint64(root)
    if root == NIL:
        return count

    top        = np.int64(0)
    stack[top] = root
    top += 1

    while top > 0:
        top -= 1
        index        = stack[top]
        order[count] = index
        count += 1

        h, l  = get_node(tree, index)
        left  = _get_left(h, l)
        right = _get_right(h, l)

        if left != NIL:
            stack[top] = left
            top += 1
        if right != NIL:
            stack[top] = right
            top += 1

    order[:count] = order[:count][::-1].copy()
    return count

@njit
def inorder_traversal( # LVR
    tree:         np.ndarray,
    root:         np.uint64,
    current_size: np.int64

) -> np.ndarray:

    """
    Extracts all row indices in ascending key order.
    Recommended for integrity checks, rank computation and bulk key listing.
    """

    traverse = np.zeros(current_size, dtype=np.uint64)
    stack    = np.zeros(current_size + 1, dtype=np.uint64)

    current_index = np.uint64(root)
    stack_idx     = 0
    traverse_idx  = 0

    while traverse_idx < current_size:

        while current_index != NIL:
            stack[stack_idx] = current_index
            stack_idx += 1

            h, l          = get_node(tree, current_index)
            current_index = _get_left(h, l)

        if stack_idx > 0:
            stack_idx -= 1
            current_index = stack[stack_idx]

            traverse[traverse_idx] = current_index
            traverse_idx += 1

            current_index = right_of(tree, current_index)

        else:
            break

    return traverse[:traverse_idx]



# ---------- JIT-Compiled Neighbour Lookups ----------
@njit
def subtree_max(
    tree:  np.ndarray,
    index: np.uint64

) -> np.uint64:

    """
    Index of the rightmost node of the subtree rooted at `index` (0 if empty).
    """

    current = np.uint64(index)
    if current == NIL:
        return NIL

    right = right_of(tree, current)
    while right != NIL:
        current = right
        right   = right_of(tree, current)

    return current

@njit
def subtree_min(
    tree:  np.ndarray,
    index: np.uint64

) -> np.uint64:

    """
    Index of the leftmost node of the subtree rooted at `index` (0 if empty).
    """

    current = np.uint64(index)
    if current == NIL:
        return NIL

    left = left_of(tree, current)
    while left != NIL:
        current = left
        left    = left_of(tree, current)

    return current

@njit
def next_inorder(
    tree:  np.ndarray,
    index: np.uint64

) -> np.uint64:

    """
    In-order successor of `index` across the whole tree, climbing parent
    links when there is no right subtree. Returns 0 past the last node.
    """

    current = np.uint64(index)
    h, l    = get_node(tree, current)
    right   = _get_right(h, l)

    if right != NIL:
        return subtree_min(tree, right)

    parent = _get_parent(h, l)
    while parent != NIL and right_of(tree, parent) == current:
        current = parent
        parent  = parent_of(tree, parent)

    return parent

@njit
def prev_inorder(
    tree:  np.ndarray,
    index: np.uint64

) -> np.uint64:

    """
    In-order predecessor of `index` across the whole tree (0 before the first node).
    """

    current = np.uint64(index)
    h, l    = get_node(tree, current)
    left    = _get_left(h, l)

    if left != NIL:
        return subtree_max(tree, left)

    parent = _get_parent(h, l)
    while parent != NIL and left_of(tree, parent) == current:
        current = parent
        parent  = parent_of(tree, parent)

    return parent



# ---------- JIT-Compiled Height Bookkeeping ----------
@njit
def update_heights(
    tree:  np.ndarray,
    order: np.ndarray,
    count: np.int64

) -> None:

    """
    Recompute the cached height of every row listed in `order`.

    `order` must be a post-order (children before parents), as produced
    by `postorder_traversal`; height(leaf) = 1, height(absent) = 0.
    """

    for i in range(count):
        index = order[i]
        h, l  = get_node(tree, index)

        h_l = height_of(tree, _get_left(h, l))
        h_r = height_of(tree, _get_right(h, l))

        set_height(tree, index, max(h_l, h_r) + ONE)

@njit
def measure_balanced(
    tree:    np.ndarray,
    order:   np.ndarray,
    count:   np.int64,
    heights: np.ndarray

) -> bool:

    """
    Check the height-balance invariant from scratch, ignoring cached heights.

    `heights` is a scratch array indexed by row (at least as long as the
    arena) that receives the measured heights; its sentinel slot must be 0.
    `order` must be a post-order of the tree.
    """

    for i in range(count):
        index = order[i]
        h, l  = get_node(tree, index)

        h_l = np.int64(heights[np.int64(_get_left(h, l))])
        h_r = np.int64(heights[np.int64(_get_right(h, l))])

        if abs(h_l - h_r) > 1:
            return False

        heights[np.int64(index)] = max(h_l, h_r) + 1

    return True
