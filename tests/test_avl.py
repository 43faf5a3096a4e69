"""Tests for the AVL balancing policy on the array-backed tree."""
import itertools

import numpy as np
import pytest

from RotateTree.AVLTreeArray import AVLTree, find_pivot, rebalance, warmup
from RotateTree.BSTArray import BinarySearchTree
from RotateTree.Traversal import postorder_traversal, update_heights

from conftest import build, shape_of


def leaf(key):
    return (key, None, None)


class TestRotationCases:
    """Each of the four classic imbalance shapes ends in the same balanced triple."""

    @pytest.mark.parametrize("keys", [
        [10, 20, 30], # RR
        [30, 20, 10], # LL
        [30, 10, 20], # LR
        [10, 30, 20], # RL
    ])
    def test_three_keys_balance_around_the_middle(self, keys):
        avl = build(AVLTree, keys)

        assert shape_of(avl) == (20, leaf(10), leaf(30))
        assert avl.get_height(avl.root) == 2
        assert avl.get_height(avl.search(10)) == 1
        assert avl.get_height(avl.search(30)) == 1
        avl.validate()

    def test_ascending_insert_rotates_left_once(self):
        avl = build(AVLTree, [10, 20, 30])

        key, left, right, height = avl.root_info
        assert key == 20
        assert avl.get_key(left) == 10
        assert avl.get_key(right) == 30
        assert height == 2

    def test_double_rotation_deeper_in_the_tree(self):
        avl = build(AVLTree, [10, 20, 30, 40, 50, 25])

        assert shape_of(avl) == (30, (20, leaf(10), leaf(25)), (40, None, leaf(50)))
        assert avl.height == 3
        avl.validate()

    def test_duplicate_insert_overwrites_without_rotating(self):
        avl = build(AVLTree, [2, 1, 3])
        before = avl.tree.copy()

        assert avl.insert(1, "one") is False
        assert avl.get(1) == "one"
        assert (avl.tree == before).all()


class TestRemove:
    """Removal cases followed by rebalancing."""

    def test_remove_two_children_promotes_predecessor(self):
        avl = build(AVLTree, [20, 10, 30, 5, 15, 25, 35])

        assert avl.remove(20) is True

        assert avl.get_key(avl.root) == 15
        assert avl.keys() == [5, 10, 15, 25, 30, 35]
        assert avl.get(15) == "15"
        avl.validate()

    def test_remove_leaf_triggers_rotation(self):
        avl = build(AVLTree, [20, 10, 30, 25])

        avl.remove(10)

        assert shape_of(avl) == (25, leaf(20), leaf(30))
        avl.validate()

    def test_remove_rebalances_every_ancestor_level(self):
        # Inserting in level order builds this exact shape with no rotation:
        #
        #              20
        #          10        30
        #        5    15   25  35
        #       3 7  12   22
        #      1
        avl = build(AVLTree, [20, 10, 30, 5, 15, 25, 35, 3, 7, 12, 22, 1])
        assert avl.get_key(avl.root) == 20

        # 30 loses its right leaf, is rotated, shrinks, and unbalances the root
        avl.remove(35)

        assert shape_of(avl) == (
            10,
            (5, (3, leaf(1), None), leaf(7)),
            (20, (15, leaf(12), None), (25, leaf(22), leaf(30))),
        )
        assert avl.is_height_balanced()
        avl.validate()

    def test_remove_absent_key(self):
        avl = build(AVLTree, [1, 2, 3])
        assert avl.remove(9) is False
        avl.validate()

    def test_remove_everything(self, rng):
        keys = rng.sample(range(1000), 64)
        avl = build(AVLTree, keys)

        for key in rng.sample(keys, len(keys)):
            avl.remove(key)
            avl.validate()

        assert len(avl) == 0
        assert avl.root == 0


class TestPublicRotations:
    """Rotations on an AVLTree keep the balance invariant and the height cache."""

    def test_unbalancing_rotation_is_undone(self):
        avl = build(AVLTree, range(1, 8))
        before = (avl.tree.copy(), avl.root)

        assert avl.rotate_left(avl.root) is False

        assert (avl.tree == before[0]).all()
        assert avl.root == before[1]
        avl.validate()

    def test_balanced_rotation_refreshes_heights(self):
        avl = build(AVLTree, [2, 1, 3, 4])

        assert avl.rotate_left(avl.search(3)) is True

        assert shape_of(avl) == (2, leaf(1), (4, leaf(3), None))
        assert avl.get_height(avl.search(4)) == 2
        assert avl.get_height(avl.search(3)) == 1
        avl.validate()


class TestProperties:
    """Invariants over many insert/remove sequences."""

    def test_every_insertion_order_of_six_keys(self):
        for keys in itertools.permutations(range(1, 7)):
            avl = build(AVLTree, keys)
            avl.validate()
            assert avl.height == 3

    def test_random_operations_match_a_dict(self, rng):
        avl = AVLTree(2)
        model = {}

        for step in range(1500):
            key = rng.randrange(120)
            if rng.random() < 0.6:
                avl.insert(key, step)
                model[key] = step
            else:
                assert avl.remove(key) == (key in model)
                model.pop(key, None)

            avl.validate()
            assert avl.is_height_balanced()

        assert list(avl.items()) == sorted(model.items())

    @pytest.mark.parametrize("n", [2, 3, 5, 8, 13, 21, 34])
    def test_single_deletions_from_every_position(self, rng, n):
        for trial in range(10):
            keys = rng.sample(range(n * 4), n)
            for victim in keys:
                avl = build(AVLTree, keys)
                avl.remove(victim)
                avl.validate()
                assert victim not in avl

    def test_height_stays_logarithmic(self):
        avl = build(AVLTree, range(1000), size=1000)

        # AVL bound: h < 1.4405 * log2(n + 2)
        assert avl.height <= int(1.4405 * np.log2(1002))
        avl.validate()


class TestKernels:
    """The policy kernels on raw arrays."""

    def test_find_pivot_reports_deepest_imbalance(self):
        chain = build(BinarySearchTree, [1, 2, 3, 4])
        order = np.zeros(5, dtype=np.uint64)
        stack = np.zeros(5, dtype=np.uint64)

        count = postorder_traversal(chain.tree, chain.root, order, stack)
        update_heights(chain.tree, order, count)

        assert chain.get_key(int(find_pivot(chain.tree, order, count))) == 2

    def test_rebalance_repairs_a_chain(self):
        chain = build(BinarySearchTree, [1, 2, 3])
        order = np.zeros(4, dtype=np.uint64)
        stack = np.zeros(4, dtype=np.uint64)

        root, fixes = rebalance(chain.tree, chain.root, order, stack)
        chain.root = int(root)

        assert int(fixes) == 1
        assert shape_of(chain) == (2, leaf(1), leaf(3))
        chain.validate()


def test_warmup():
    assert warmup() is True
