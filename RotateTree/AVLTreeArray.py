import logging
import numpy as np
from numba import njit
from typing import Any, Tuple

from RotateTree.NodeLayout import (
    NIL,
    get_node,
    _get_left,
    _get_right,
    height_of,
)
from RotateTree.Rotation import left_rotation, right_rotation
from RotateTree.Traversal import postorder_traversal, update_heights
from RotateTree.BSTArray import BinarySearchTree, DEFAULT_CAPACITY
from RotateTree.RotateBSTArray import RotateBST


logger = logging.getLogger(__name__)



# ---------- JIT-Compiled AVL Balancing Policy ----------
@njit
def find_pivot(
    tree:  np.ndarray,
    order: np.ndarray,
    count: np.int64

) -> np.uint64:

    """
    Locate the deepest node whose child subtree heights differ by more than one.

    `order` is a post-order (left subtree, right subtree, node), so the first
    imbalanced node met is one whose descendants are all balanced. The search
    stops at the first hit. Cached heights must be current.

    Returns:
        np.uint64: Index of the pivot, or 0 if the tree is height-balanced.
    """

    for i in range(count):
        index = order[i]
        h, l  = get_node(tree, index)

        h_l = np.int64(height_of(tree, _get_left(h, l)))
        h_r = np.int64(height_of(tree, _get_right(h, l)))

        if abs(h_l - h_r) > 1:
            return np.uint64(index)

    return NIL

@njit
def rotate_pivot(
    tree:  np.ndarray,
    root:  np.uint64,
    pivot: np.uint64

) -> np.uint64:

    """
    Apply one single or double rotation at `pivot`, chosen from its children's
    and grandchildren's cached heights:

        right taller, right-right at least as tall as right-left -> SLR (RR)
        right taller, right-left taller                          -> SRR on right child, SLR (RL)
        left taller,  left-left at least as tall as left-right   -> SRR (LL)
        left taller,  left-right taller                          -> SLR on left child, SRR (LR)

    Returns:
        np.uint64: The new tree root.
    """

    root  = np.uint64(root)
    pivot = np.uint64(pivot)

    h, l  = get_node(tree, pivot)
    left  = _get_left(h, l)
    right = _get_right(h, l)

    if height_of(tree, right) > height_of(tree, left): # R
        h_c, l_c = get_node(tree, right)
        if height_of(tree, _get_left(h_c, l_c)) > height_of(tree, _get_right(h_c, l_c)): # RL
            _, root = right_rotation(tree, root, right)
        _, root = left_rotation(tree, root, pivot)

    else: # L
        h_c, l_c = get_node(tree, left)
        if height_of(tree, _get_right(h_c, l_c)) > height_of(tree, _get_left(h_c, l_c)): # LR
            _, root = left_rotation(tree, root, left)
        _, root = right_rotation(tree, root, pivot)

    return root

@njit
def rebalance(
    tree:  np.ndarray,
    root:  np.uint64,
    order: np.ndarray,
    stack: np.ndarray

) -> Tuple[np.uint64, np.int64]:

    """
    Recompute every cached height bottom-up, then fix pivots one at a time
    (recomputing heights after each fix) until no pivot remains.

    An insertion into an AVL tree produces at most one pivot. A deletion may
    unbalance several ancestors in turn; each pass fixes the deepest one.

    Args:
        tree (np.ndarray): 2D array [N, 2] containing the packed rows.
        root (np.uint64): Index of the current tree root.
        order (np.ndarray): Scratch array for the post-order walk.
        stack (np.ndarray): Scratch stack for the post-order walk.

    Returns:
        Tuple[np.uint64, np.int64]:
            - new_root: Index of the tree root after rebalancing.
            - fixes: Number of pivots that were rotated.
    """

    root  = np.uint64(root)
    fixes = np.int64(0)

    count = postorder_traversal(tree, root, order, stack)
    update_heights(tree, order, count)

    pivot = find_pivot(tree, order, count)
    while pivot != NIL:
        root = rotate_pivot(tree, root, pivot)
        fixes += 1

        count = postorder_traversal(tree, root, order, stack)
        update_heights(tree, order, count)
        pivot = find_pivot(tree, order, count)

    return root, fixes



# --------- AVLTree API ---------
class AVLTree(RotateBST):
    """
    Self-balancing ordered map (AVL) on top of the rotation-capable BST.

    After every insert/remove that changes the structure, cached heights are
    recomputed bottom-up and the rotation engine restores the invariant
    |height(left) - height(right)| <= 1 at every node.

    Public rotations are accepted only when the tree stays height-balanced;
    otherwise they are undone and report False.
    """

    heights_cached = True

    def __init__(self, size: int = DEFAULT_CAPACITY) -> None:
        super().__init__(size)

    def _rotate(self, kernel, direction: str, index: int) -> bool:
        saved = (self.tree.copy(), self.root)
        if not super()._rotate(kernel, direction, index):
            return False

        self._after_reshape()
        if self.is_height_balanced():
            return True

        self.tree, self.root = saved
        logger.debug("Rotation %s at row %d undone: tree would be unbalanced", direction, index)
        return False

    def _rebalance(self) -> None:
        order, stack = self._scratch()
        root, fixes  = rebalance(self.tree, self.root, order, stack)
        self.root    = int(root)

        if fixes and logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Rebalanced with %d pivot fix(es), root=%r, height=%d",
                fixes, self._keys[self.root], self.get_height(self.root)
            )

    def insert(self, key: Any, value: Any) -> bool:
        """Inserts a key/value pair with auto-rebalancing. Returns True if a node was created, False on overwrite."""

        _, created = self._place(key, value)
        if created:
            self._rebalance()
        return created

    def remove(self, key: Any) -> bool:
        """Deletes a key and stabilizes the tree. Returns True if found and removed, False otherwise."""

        if not self._detach(key):
            return False

        self._rebalance()
        return True

    def _accepts_shape(self, target: BinarySearchTree) -> bool:
        return target.is_height_balanced()

    def _after_reshape(self) -> None:
        order, stack = self._scratch()
        count        = postorder_traversal(self.tree, self.root, order, stack)
        update_heights(self.tree, order, count)

    def validate(self) -> None:
        """
        Extends BinarySearchTree.validate with the height cache and the
        AVL balance check at every node.
        """

        super().validate()

        for index in self._indices():
            left, right, _, height = self.get_node(index)
            h_l = self.get_height(left)
            h_r = self.get_height(right)

            if height != max(h_l, h_r) + 1:
                raise ValueError(f"Stale height {height} at {self._keys[index]!r}")
            if abs(h_l - h_r) > 1:
                raise ValueError(f"Balance violation at {self._keys[index]!r}: {h_l} vs {h_r}")

    @property
    def root_info(self) -> Tuple[Any, int, int, int]:
        """(root key, left index, right index, height) of the root row."""
        left, right, _, height = self.get_node(self.root)
        return self._keys[self.root], left, right, height



# --------- Utils ---------
def warmup() -> bool:
    """
    Minimally triggers JIT compilation for the core kernels.
    """

    avl = AVLTree(8)
    for key in (30, 20, 10, 40, 50, 25):
        avl.insert(key, key)

    _ = avl.search(20)
    avl.remove(10)
    avl.remove(30)

    other = AVLTree(8)
    for key in sorted(avl.keys()):
        other.insert(key, key)

    avl.transform(other)
    _ = avl.is_height_balanced()

    return True
