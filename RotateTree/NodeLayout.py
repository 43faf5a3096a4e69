import numpy as np
from numba import njit
from typing import Tuple



# Packed 128-bit layout:
#     LAYOUT[128]: [left[32] | right[32]] [parent[32] | height[32]]
#                      high word              low word
#     Limitations:
#         0 <= left, right, parent <= (1 << 32) - 1
#         0 <= height              <= (1 << 32) - 1
#
#     Row 0 is the "absent" sentinel and is never written,
#     so every accessor on index 0 reads zero (height(None) == 0).



FIELD_BITS  = 32
MAX_INDEX   = (1 << FIELD_BITS) - 1

FIELD_MASK  = np.uint64(0xFFFFFFFF)         # (1 << 32) - 1
UPPER_MASK  = np.uint64(0xFFFFFFFF00000000) # FIELD_MASK << 32
FIELD_SHIFT = np.uint64(0x20)               # 32
NIL         = np.uint64(0)
ONE         = np.uint64(1)



# ---------- JIT-Compiled Bitwise Accessors / Updaters for Packed Fields ----------
@njit(inline="always")
def pack(
    left:   np.uint64,
    right:  np.uint64,
    parent: np.uint64,
    height: np.uint64

) -> Tuple[np.uint64, np.uint64]:

    """
    Pack four unsigned integers into a tuple of two 64-bit integers (high, low)
    according to the 128-bit layout: [left[32] | right[32]] [parent[32] | height[32]].

    :param left: Index of the left child (0 if absent)
    :type left: np.uint64
    :param right: Index of the right child (0 if absent)
    :type right: np.uint64
    :param parent: Index of the parent (0 for the root)
    :type parent: np.uint64
    :param height: Cached subtree height
    :type height: np.uint64
    :return: A tuple (high, low) representing the packed row
    :rtype: Tuple[np.uint64, np.uint64]
    """

    left   = np.uint64(left)
    right  = np.uint64(right)
    parent = np.uint64(parent)
    height = np.uint64(height)

    high = ((left & FIELD_MASK) << FIELD_SHIFT) | (right & FIELD_MASK)
    low  = ((parent & FIELD_MASK) << FIELD_SHIFT) | (height & FIELD_MASK)

    return np.uint64(high), np.uint64(low)

@njit(inline="always")
def unpack(
    high: np.uint64,
    low:  np.uint64

) -> Tuple[np.uint64, np.uint64, np.uint64, np.uint64]:

    """
    Unpack a packed row (high, low) into (left, right, parent, height).

    NOTE:
    Intended for control, testing and debugging. Kernels read single fields
    through the dedicated accessors below.
    """

    high = np.uint64(high)
    low  = np.uint64(low)

    left   = (high >> FIELD_SHIFT) & FIELD_MASK
    right  = high & FIELD_MASK
    parent = (low >> FIELD_SHIFT) & FIELD_MASK
    height = low & FIELD_MASK

    return left, right, parent, height

@njit(inline="always")
def _get_left(
    high: np.uint64,
    _:    np.uint64

) -> np.uint64:

    """
    Extract the 'left' field from the high 64-bit integer.
    """

    return np.uint64((np.uint64(high) >> FIELD_SHIFT) & FIELD_MASK)

@njit(inline="always")
def _get_right(
    high: np.uint64,
    _:    np.uint64

) -> np.uint64:

    """
    Extract the 'right' field from the high 64-bit integer.
    """

    return np.uint64(np.uint64(high) & FIELD_MASK)

@njit(inline="always")
def _get_parent(
    _:   np.uint64,
    low: np.uint64

) -> np.uint64:

    """
    Extract the 'parent' field from the low 64-bit integer.
    """

    return np.uint64((np.uint64(low) >> FIELD_SHIFT) & FIELD_MASK)

@njit(inline="always")
def _get_height(
    _:   np.uint64,
    low: np.uint64

) -> np.uint64:

    """
    Extract the 'height' field from the low 64-bit integer.
    """

    return np.uint64(np.uint64(low) & FIELD_MASK)

@njit(inline="always")
def _update_left(
    high:     np.uint64,
    low:      np.uint64,
    new_left: np.uint64

) -> Tuple[np.uint64, np.uint64]:

    """
    Update the 'left' field in the high 64-bit integer.
    The low integer is returned as-is.
    """

    high     = np.uint64(high)
    new_left = np.uint64(new_left)

    high = (high & FIELD_MASK) | ((new_left & FIELD_MASK) << FIELD_SHIFT)

    return high, np.uint64(low)

@njit(inline="always")
def _update_right(
    high:      np.uint64,
    low:       np.uint64,
    new_right: np.uint64

) -> Tuple[np.uint64, np.uint64]:

    """
    Update the 'right' field in the high 64-bit integer.
    The low integer is returned as-is.
    """

    high      = np.uint64(high)
    new_right = np.uint64(new_right)

    high = (high & UPPER_MASK) | (new_right & FIELD_MASK)

    return high, np.uint64(low)

@njit(inline="always")
def _update_parent(
    high:       np.uint64,
    low:        np.uint64,
    new_parent: np.uint64

) -> Tuple[np.uint64, np.uint64]:

    """
    Update the 'parent' field in the low 64-bit integer.
    The high integer is returned as-is.
    """

    low        = np.uint64(low)
    new_parent = np.uint64(new_parent)

    low = (low & FIELD_MASK) | ((new_parent & FIELD_MASK) << FIELD_SHIFT)

    return np.uint64(high), low

@njit(inline="always")
def _update_height(
    high:       np.uint64,
    low:        np.uint64,
    new_height: np.uint64

) -> Tuple[np.uint64, np.uint64]:

    """
    Update the 'height' field in the low 64-bit integer.
    The high integer is returned as-is.
    """

    low        = np.uint64(low)
    new_height = np.uint64(new_height)

    low = (low & UPPER_MASK) | (new_height & FIELD_MASK)

    return np.uint64(high), low

@njit(inline="always")
def set_node(
    tree:  np.ndarray,
    index,
    node:  Tuple[np.uint64, np.uint64]

) -> None:

    """
    Assign a packed node tuple (high, low) to the given row in the tree array.
    Compatible with Numba nopython mode.
    """

    tree[np.int64(index), 0] = node[0]
    tree[np.int64(index), 1] = node[1]

@njit(inline="always")
def get_node(
    tree:  np.ndarray,
    index

) -> Tuple[np.uint64, np.uint64]:

    """
    Get a node from tree by index.
    """

    i = np.int64(index)
    return tree[i, 0], tree[i, 1]



# ---------- JIT-Compiled Link Helpers ----------
@njit(inline="always")
def left_of(tree: np.ndarray, index) -> np.uint64:
    h, l = get_node(tree, index)
    return _get_left(h, l)

@njit(inline="always")
def right_of(tree: np.ndarray, index) -> np.uint64:
    h, l = get_node(tree, index)
    return _get_right(h, l)

@njit(inline="always")
def parent_of(tree: np.ndarray, index) -> np.uint64:
    h, l = get_node(tree, index)
    return _get_parent(h, l)

@njit(inline="always")
def height_of(tree: np.ndarray, index) -> np.uint64:
    """Cached height of a row; the sentinel row reads 0."""
    h, l = get_node(tree, index)
    return _get_height(h, l)

@njit(inline="always")
def set_left(tree: np.ndarray, index, child) -> None:
    h, l = get_node(tree, index)
    set_node(tree, index, _update_left(h, l, child))

@njit(inline="always")
def set_right(tree: np.ndarray, index, child) -> None:
    h, l = get_node(tree, index)
    set_node(tree, index, _update_right(h, l, child))

@njit(inline="always")
def set_parent(tree: np.ndarray, index, parent) -> None:
    h, l = get_node(tree, index)
    set_node(tree, index, _update_parent(h, l, parent))

@njit(inline="always")
def set_height(tree: np.ndarray, index, height) -> None:
    h, l = get_node(tree, index)
    set_node(tree, index, _update_height(h, l, height))

@njit(inline="always")
def replace_child(
    tree:      np.ndarray,
    parent,
    old_child,
    new_child

) -> None:

    """
    Point `parent`'s link that currently references `old_child` at `new_child`.
    Does nothing when `parent` is the sentinel (the caller updates the root).
    """

    parent = np.uint64(parent)
    if parent == NIL:
        return

    if left_of(tree, parent) == np.uint64(old_child):
        set_left(tree, parent, new_child)
    else:
        set_right(tree, parent, new_child)
