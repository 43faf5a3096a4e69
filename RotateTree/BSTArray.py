import logging
import numpy as np
from typing import Any, Iterator, List, Optional, Tuple

from numba import njit

from RotateTree.NodeLayout import (
    MAX_INDEX,
    NIL,
    pack,
    unpack,
    get_node,
    set_node,
    _get_left,
    _get_right,
    _get_parent,
    set_left,
    set_right,
    set_parent,
    replace_child,
)
from RotateTree.Traversal import (
    preorder_traversal,
    postorder_traversal,
    inorder_traversal,
    subtree_min,
    subtree_max,
    next_inorder,
    prev_inorder,
    measure_balanced,
)


logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 64
GROWTH_FACTOR    = 2



# ---------- JIT-Compiled Substrate Operations ----------
@njit
def splice(
    tree:  np.ndarray,
    root:  np.uint64,
    index: np.uint64

) -> np.uint64:

    """
    Unlink a node that has at most one child, moving that child (if any)
    into its position. The removed row itself is left for the caller to free.

    Args:
        tree (np.ndarray): 2D array [N, 2] containing the packed rows.
        root (np.uint64): Index of the current tree root.
        index (np.uint64): Index of the node to unlink.

    Returns:
        np.uint64: The new root index (0 if the tree became empty).
    """

    root  = np.uint64(root)
    index = np.uint64(index)

    h, l        = get_node(tree, index)
    left        = _get_left(h, l)
    parent      = _get_parent(h, l)
    replacement = left if left != NIL else _get_right(h, l)

    if replacement != NIL:
        set_parent(tree, replacement, parent)

    if parent == NIL:
        root = replacement
    else:
        replace_child(tree, parent, index, replacement)

    return root



class Node:
    """
    Read-only handle on one row of a tree.

    The handle follows the row, not the key: after a rotation it still
    points at the same key, and after the row is freed it must not be used.
    """

    __slots__ = ("_tree", "index")

    def __init__(self, tree: "BinarySearchTree", index: int) -> None:
        self._tree = tree
        self.index = index

    def _wrap(self, index: int) -> Optional["Node"]:
        return Node(self._tree, index) if index else None

    @property
    def key(self) -> Any:
        return self._tree.get_key(self.index)

    @property
    def value(self) -> Any:
        return self._tree.get_value(self.index)

    @property
    def left(self) -> Optional["Node"]:
        return self._wrap(self._tree.get_left(self.index))

    @property
    def right(self) -> Optional["Node"]:
        return self._wrap(self._tree.get_right(self.index))

    @property
    def parent(self) -> Optional["Node"]:
        return self._wrap(self._tree.get_parent(self.index))

    @property
    def height(self) -> int:
        return self._tree.get_height(self.index)

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Node)
            and other._tree is self._tree
            and other.index == self.index
        )

    def __hash__(self) -> int:
        return hash((id(self._tree), self.index))

    def __repr__(self) -> str:
        return "Node(key=" + repr(self.key) + ", value=" + repr(self.value) + ")"



class BinarySearchTree:
    """
    Unbalanced ordered map stored in a packed-row arena.

    Links live in a NumPy array of shape [size, 2] (one 128-bit row per
    node, see NodeLayout); keys and values live in parallel Python lists
    because they may be arbitrary ordered objects. Row 0 is the sentinel.

    Attributes:
        size (int): Allocated capacity of the arena, sentinel row included.
        count (int): Current number of live nodes.
        tree (np.ndarray): Underlying [size, 2] uint64 array of packed rows.
        root (int): Index of the current root node (0 if empty).
    """

    # Whether insert/remove keep each row's height field up to date
    heights_cached = False

    def __init__(
        self,
        size: int = DEFAULT_CAPACITY

    ) -> None:

        if not (0 <= size < MAX_INDEX):
            raise ValueError(
                f"The size value must be between 0 and {MAX_INDEX - 1}, not {size}"
            )

        self.size       = size + 1
        self.count      = 0
        self.tree       = np.zeros((self.size, 2), dtype=np.uint64)
        self.root       = 0
        self._free      = 1
        self._free_list: List[int] = []
        self._keys:   List[Any] = [None] * self.size
        self._values: List[Any] = [None] * self.size

    # --------- Arena ---------
    def _allocate(self) -> int:
        if self._free_list:
            return self._free_list.pop()

        if self._free >= self.size:
            self._grow()

        index = self._free
        self._free += 1
        return index

    def _release(self, index: int) -> None:
        set_node(self.tree, index, (np.uint64(0), np.uint64(0)))
        self._keys[index]   = None
        self._values[index] = None
        self._free_list.append(index)

    def _grow(self) -> None:
        new_size = max(self.size * GROWTH_FACTOR, 2)
        if new_size - 1 > MAX_INDEX:
            if self.size - 1 >= MAX_INDEX:
                raise OverflowError(
                    f"Cannot grow the arena beyond {MAX_INDEX} rows"
                )
            new_size = MAX_INDEX + 1

        grown = np.zeros((new_size, 2), dtype=np.uint64)
        grown[:self.size] = self.tree

        extra = new_size - self.size
        self._keys.extend([None] * extra)
        self._values.extend([None] * extra)

        logger.debug("Arena grown from %d to %d rows", self.size, new_size)
        self.tree = grown
        self.size = new_size

    def in_range(self, index: int) -> bool:
        """True iff `index` names a row of the arena (the sentinel included)."""
        return 0 <= index < self.size

    def _check_index(self, index: int) -> int:
        if not self.in_range(index):
            raise IndexError(
                f"Row index {index} is outside the arena of {self.size} rows"
            )
        return index

    def _scratch(self) -> Tuple[np.ndarray, np.ndarray]:
        """Order and stack buffers large enough for one full traversal."""
        return (
            np.zeros(self.count + 1, dtype=np.uint64),
            np.zeros(self.count + 1, dtype=np.uint64),
        )

    # --------- Row access ---------
    def get_node(
        self,
        index: int

    ) -> Tuple[int, int, int, int]:

        """
        Unpack all link metadata for a specific node index.

        Args:
            index (int): The index of the node in the tree array.

        Returns:
            Tuple[int, int, int, int]: (left_index, right_index, parent_index, height).
        """

        if index == 0:
            return 0, 0, 0, 0

        # Words stay np.uint64: a high word >= 2**63 does not fit an int64 argument
        h, l = self.tree[self._check_index(index)]
        left, right, parent, height = unpack(h, l)
        return int(left), int(right), int(parent), int(height)

    def get_left(self, index: int) -> int:
        """Index of the left child, or 0 if no child exists."""
        return self.get_node(index)[0]

    def get_right(self, index: int) -> int:
        """Index of the right child, or 0 if no child exists."""
        return self.get_node(index)[1]

    def get_parent(self, index: int) -> int:
        """Index of the parent, or 0 for the root."""
        return self.get_node(index)[2]

    def get_height(self, index: int) -> int:
        """
        Height of the subtree rooted at `index` (0 for the sentinel).

        Trees that keep the height field current read it directly; the
        others measure the subtree from its shape.
        """
        if self.heights_cached:
            return self.get_node(index)[3]
        return self._measure_height(index)

    def get_key(self, index: int) -> Any:
        return self._keys[self._check_index(index)]

    def get_value(self, index: int) -> Any:
        return self._values[self._check_index(index)]

    @property
    def root_node(self) -> Optional[Node]:
        return Node(self, self.root) if self.root else None

    def _measure_height(self, index: int) -> int:
        if self._check_index(index) == 0:
            return 0

        order, stack = self._scratch()
        count        = postorder_traversal(self.tree, index, order, stack)
        heights      = {0: 0}
        for row in order[:count]:
            left, right, _, _ = self.get_node(int(row))
            heights[int(row)] = max(heights[left], heights[right]) + 1

        return heights[index]

    @property
    def height(self) -> int:
        """Height of the tree measured from its shape (0 when empty)."""
        return self._measure_height(self.root)

    # --------- Lookup ---------
    def search(self, key: Any) -> int:
        """Locates a key using iterative BST search. Returns the node index or 0 if not found."""

        current = self.root
        while current != 0:
            current_key = self._keys[current]
            if key == current_key:
                return current

            left, right, _, _ = self.get_node(current)
            current = left if key < current_key else right

        return 0

    def find(self, key: Any) -> Optional[Node]:
        index = self.search(key)
        return Node(self, index) if index else None

    def get(self, key: Any, default: Any = None) -> Any:
        index = self.search(key)
        return self._values[index] if index else default

    def __contains__(self, key: Any) -> bool:
        return self.search(key) != 0

    def min_key(self) -> Any:
        index = int(subtree_min(self.tree, self.root))
        return self._keys[index] if index else None

    def max_key(self) -> Any:
        index = int(subtree_max(self.tree, self.root))
        return self._keys[index] if index else None

    def successor(self, index: int) -> int:
        """
        Find the in-order successor of a node across the whole tree.

        Returns:
            int: The index of the next node in key order, or 0 past the last node.
        """
        return int(next_inorder(self.tree, self._check_index(index)))

    def predecessor(self, index: int) -> int:
        """
        Find the in-order predecessor of a node across the whole tree.

        Returns:
            int: The index of the previous node in key order, or 0 before the first node.
        """
        return int(prev_inorder(self.tree, self._check_index(index)))

    # --------- Mutation ---------
    def _place(
        self,
        key:   Any,
        value: Any

    ) -> Tuple[int, bool]:

        """
        Standard BST descent. Returns (index, created); a duplicate key
        overwrites the stored value and creates nothing.
        """

        if self.root == 0:
            index = self._allocate()
            set_node(self.tree, index, pack(0, 0, 0, 1))
            self._keys[index]   = key
            self._values[index] = value
            self.root = index
            self.count += 1
            return index, True

        current = self.root
        while True:
            current_key = self._keys[current]
            if key == current_key:
                self._values[current] = value
                return current, False

            left, right, _, _ = self.get_node(current)
            go_right = current_key < key
            child    = right if go_right else left
            if child == 0:
                break
            current = child

        # The arena may grow here, so no array view is held across the call
        index = self._allocate()
        set_node(self.tree, index, pack(0, 0, current, 1))
        if go_right:
            set_right(self.tree, current, index)
        else:
            set_left(self.tree, current, index)

        self._keys[index]   = key
        self._values[index] = value
        self.count += 1
        return index, True

    def _detach(self, key: Any) -> bool:
        """
        Remove the node holding `key`. A node with two children takes the
        key/value of its in-order predecessor, whose row is removed instead.
        """

        index = self.search(key)
        if index == 0:
            return False

        left, right, _, _ = self.get_node(index)
        if left != 0 and right != 0:
            largest = int(subtree_max(self.tree, left))
            self._keys[index]   = self._keys[largest]
            self._values[index] = self._values[largest]
            index = largest

        self.root = int(splice(self.tree, self.root, index))
        self._release(index)
        self.count -= 1
        return True

    def insert(self, key: Any, value: Any) -> bool:
        """Inserts a key/value pair without rebalancing. Returns True if a node was created."""
        _, created = self._place(key, value)
        return created

    def remove(self, key: Any) -> bool:
        """Deletes a key without rebalancing. Returns True if found and removed."""
        return self._detach(key)

    def clear(self) -> None:
        """Release every node. The arena keeps its current capacity."""
        self.tree[:] = 0
        self._keys       = [None] * self.size
        self._values     = [None] * self.size
        self._free       = 1
        self._free_list  = []
        self.root        = 0
        self.count       = 0

    # --------- Iteration ---------
    def _indices(self) -> Iterator[int]:
        index = int(subtree_min(self.tree, self.root))
        while index != 0:
            yield index
            index = int(next_inorder(self.tree, index))

    def __iter__(self) -> Iterator[Any]:
        for index in self._indices():
            yield self._keys[index]

    def keys(self) -> List[Any]:
        order = inorder_traversal(self.tree, self.root, self.count)
        return [self._keys[int(index)] for index in order]

    def values(self) -> List[Any]:
        order = inorder_traversal(self.tree, self.root, self.count)
        return [self._values[int(index)] for index in order]

    def items(self) -> Iterator[Tuple[Any, Any]]:
        for index in self._indices():
            yield self._keys[index], self._values[index]

    def preorder_keys(self) -> List[Any]:
        """Keys in pre-order; for a BST this sequence determines the shape."""
        order, stack = self._scratch()
        count        = preorder_traversal(self.tree, self.root, order, stack)
        return [self._keys[int(index)] for index in order[:count]]

    def ranks(self) -> np.ndarray:
        """
        Array indexed by row holding each node's 1-based position in key order
        (0 for free rows and the sentinel).
        """
        rank  = np.zeros(self.size, dtype=np.uint64)
        order = inorder_traversal(self.tree, self.root, self.count)
        rank[order.astype(np.int64)] = np.arange(1, order.size + 1, dtype=np.uint64)
        return rank

    def __len__(self) -> int:
        return self.count

    # Hooks used by Transform.transform when this tree is the one reshaped
    def _accepts_shape(self, target: "BinarySearchTree") -> bool:
        return True

    def _after_reshape(self) -> None:
        pass

    # --------- Integrity ---------
    def is_height_balanced(self) -> bool:
        """True iff every node's subtrees differ in height by at most one, measured from scratch."""
        order, stack = self._scratch()
        count        = postorder_traversal(self.tree, self.root, order, stack)
        heights      = np.zeros(self.size, dtype=np.int64)
        return bool(measure_balanced(self.tree, order, count, heights))

    def validate(self) -> None:
        """
        Walk the whole tree and raise ValueError on the first broken
        invariant: key ordering, parent/child links, or node count.
        """

        if self.root and self.get_parent(self.root) != 0:
            raise ValueError(f"Root {self._keys[self.root]!r} has a parent")

        seen  = 0
        # (index, lower bound index, upper bound index)
        stack = [(self.root, 0, 0)] if self.root else []
        while stack:
            index, low, high = stack.pop()
            key = self._keys[index]
            seen += 1

            if low and not self._keys[low] < key:
                raise ValueError(f"Ordering violation at {key!r}")
            if high and not key < self._keys[high]:
                raise ValueError(f"Ordering violation at {key!r}")

            left, right, _, _ = self.get_node(index)
            for child in (left, right):
                if child and self.get_parent(child) != index:
                    raise ValueError(f"Parent link of {self._keys[child]!r} does not point at {key!r}")

            if left:
                stack.append((left, low, index))
            if right:
                stack.append((right, index, high))

        if seen != self.count:
            raise ValueError(f"Reached {seen} nodes but count is {self.count}")

    # --------- Display ---------
    def pretty(self) -> str:
        """
        Sideways rendering, right subtree on top, one node per line.
        Intended for debugging small trees.
        """

        lines = []
        stack = [(self.root, 0, False)] if self.root else []
        while stack:
            index, depth, expanded = stack.pop()
            if expanded:
                lines.append("    " * depth + repr(self._keys[index]))
                continue

            left, right, _, _ = self.get_node(index)
            if left:
                stack.append((left, depth + 1, False))
            stack.append((index, depth, True))
            if right:
                stack.append((right, depth + 1, False))

        return "\n".join(lines)

    def __str__(self) -> str:
        root_key = self._keys[self.root] if self.root else None
        return (
            type(self).__name__ + "(size=" + str(self.count)
            + ", root=" + repr(root_key) + ", height=" + str(self.height) + ")"
        )
