import logging

from RotateTree.BSTArray import BinarySearchTree, DEFAULT_CAPACITY
from RotateTree.Rotation import left_rotation, right_rotation
from RotateTree import Transform


logger = logging.getLogger(__name__)



class RotateBST(BinarySearchTree):
    """
    Binary search tree that can be reshaped with rotations.

    Adds the single left/right rotations and the rotation-only shape
    transformation between two trees holding the same key set.
    """

    def __init__(self, size: int = DEFAULT_CAPACITY) -> None:
        super().__init__(size)

    def _rotate(self, kernel, direction: str, index: int) -> bool:
        if index == 0 or not self.in_range(index):
            return False

        ok, root = kernel(self.tree, self.root, index)
        if not ok:
            return False

        self.root = int(root)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Rotated %s at %r, root=%r",
                direction, self._keys[index], self._keys[self.root]
            )
        return True

    def rotate_left(self, index: int) -> bool:
        """
        Left-rotate around the node at `index`: its right child takes its place.
        Returns False (tree unchanged) when the node has no right child
        or `index` is not a row of the arena.
        """
        return self._rotate(left_rotation, "left", index)

    def rotate_right(self, index: int) -> bool:
        """
        Right-rotate around the node at `index`: its left child takes its place.
        Returns False (tree unchanged) when the node has no left child
        or `index` is not a row of the arena.
        """
        return self._rotate(right_rotation, "right", index)

    def same_keys(self, other: BinarySearchTree) -> bool:
        """True iff both trees hold exactly the same set of keys."""
        return Transform.same_key_set(self, other)

    def same_shape(self, other: BinarySearchTree) -> bool:
        return Transform.same_shape(self, other)

    def transform(self, other: BinarySearchTree) -> bool:
        """
        Rotate `other` until it has this tree's shape.

        Returns False, leaving both trees untouched, when the key sets differ.
        """
        return Transform.transform(self, other)
