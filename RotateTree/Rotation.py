import numpy as np
from numba import njit
from typing import Tuple

from RotateTree.NodeLayout import (
    NIL,
    get_node,
    _get_left,
    _get_right,
    _get_parent,
    set_left,
    set_right,
    set_parent,
    replace_child,
)



# ---------- JIT-Compiled Rotation Engine ----------
@njit(inline="always")
def right_rotation( # SRR: Single Right Rotation
    tree:  np.ndarray,
    root:  np.uint64,
    index: np.uint64

) -> Tuple[np.uint8, np.uint64]:

    """
    Perform a single right rotation (SRR) around the node at `index`.

    The left child of the target node takes its position (or becomes the
    tree root), the target becomes that child's right child, and the
    child's former right subtree becomes the target's new left subtree.
    Parent back-references of every moved row are rewritten.

    Heights are NOT touched: the rotation is a pure shape primitive shared
    by the balancer and the shape transformer.

    :param tree: Array-based tree containing packed rows
    :type tree: np.ndarray
    :param root: Index of the current tree root
    :type root: np.uint64
    :param index: Index of the rotation pivot
    :type index: np.uint64
    :return: (1, new_root) if rotated, (0, root) if the pivot has no left child
    :rtype: Tuple[np.uint8, np.uint64]
    """

    root  = np.uint64(root)
    index = np.uint64(index)

    # Get nodes
    h_target, l_target = get_node(tree, index)
    left_index         = _get_left(h_target, l_target)

    if left_index == NIL:
        return np.uint8(0), root

    parent_index = _get_parent(h_target, l_target)
    h_left, l_left = get_node(tree, left_index)
    inner_index  = _get_right(h_left, l_left)


    # Rotate
    set_left(tree, index, inner_index)
    if inner_index != NIL:
        set_parent(tree, inner_index, index)

    set_right(tree, left_index, index)
    set_parent(tree, index, left_index)
    set_parent(tree, left_index, parent_index)

    # Re-link the former parent (or the root)
    if parent_index == NIL:
        root = left_index
    else:
        replace_child(tree, parent_index, index, left_index)

    return np.uint8(1), root

@njit(inline="always")
def left_rotation( # SLR: Single Left Rotation
    tree:  np.ndarray,
    root:  np.uint64,
    index: np.uint64

) -> Tuple[np.uint8, np.uint64]:

    """
    Perform a single left rotation (SLR) around the node at `index`.

    This rotation is applied when a node is right-heavy and when a
    right-leaning chain is unrolled during shape transformation.
    The right child of the target node takes its position, the target
    becomes its left child, and the child's former left subtree becomes
    the target's new right subtree.

    The function:
    - Rewires child and parent links using the packed row representation
    - Promotes the right child to tree root if the target was the root
    - Modifies the tree in-place, in O(1)

    :param tree: Array-based tree containing packed rows
    :type tree: np.ndarray
    :param root: Index of the current tree root
    :type root: np.uint64
    :param index: Index of the rotation pivot
    :type index: np.uint64
    :return: (1, new_root) if rotated, (0, root) if the pivot has no right child
    :rtype: Tuple[np.uint8, np.uint64]
    """

    root  = np.uint64(root)
    index = np.uint64(index)

    # Gets nodes
    h_target, l_target = get_node(tree, index)
    right_index        = _get_right(h_target, l_target)

    if right_index == NIL:
        return np.uint8(0), root

    parent_index     = _get_parent(h_target, l_target)
    h_right, l_right = get_node(tree, right_index)
    inner_index      = _get_left(h_right, l_right)


    # Rotate
    set_right(tree, index, inner_index)
    if inner_index != NIL:
        set_parent(tree, inner_index, index)

    set_left(tree, right_index, index)
    set_parent(tree, index, right_index)
    set_parent(tree, right_index, parent_index)

    # Re-link the former parent (or the root)
    if parent_index == NIL:
        root = right_index
    else:
        replace_child(tree, parent_index, index, right_index)

    return np.uint8(1), root
