"""Tests for the single left/right rotation engine."""
import pytest

from RotateTree.RotateBSTArray import RotateBST
from RotateTree.Rotation import left_rotation, right_rotation

from conftest import build, shape_of


def leaf(key):
    return (key, None, None)


def test_rotate_left_at_root_promotes_right_child():
    tree = build(RotateBST, [2, 1, 4, 3, 5])

    assert tree.rotate_left(tree.root)

    assert shape_of(tree) == (4, (2, leaf(1), leaf(3)), leaf(5))
    assert tree.get_key(tree.root) == 4
    assert tree.get_parent(tree.root) == 0
    tree.validate()


def test_rotate_right_at_root_promotes_left_child():
    tree = build(RotateBST, [4, 2, 5, 1, 3])

    assert tree.rotate_right(tree.root)

    assert shape_of(tree) == (2, leaf(1), (4, leaf(3), leaf(5)))
    tree.validate()


def test_rotate_right_under_a_left_link():
    tree = build(RotateBST, [5, 3, 7, 2, 4])

    assert tree.rotate_right(tree.search(3))

    assert shape_of(tree) == (5, (2, None, (3, None, leaf(4))), leaf(7))
    tree.validate()


def test_rotate_left_under_a_right_link():
    tree = build(RotateBST, [1, 3, 2, 4])

    assert tree.rotate_left(tree.search(3))

    assert shape_of(tree) == (1, None, (4, (3, leaf(2), None), None))
    assert tree.get_key(tree.get_parent(tree.search(4))) == 1
    tree.validate()


def test_inner_subtree_changes_parent():
    tree = build(RotateBST, [2, 1, 4, 3, 5])
    inner = tree.search(3)

    tree.rotate_left(tree.root)

    assert tree.get_key(tree.get_parent(inner)) == 2
    assert tree.get_right(tree.search(2)) == inner


@pytest.mark.parametrize("direction", ["left", "right"])
def test_missing_child_is_reported_and_leaves_tree_unchanged(direction):
    keys = [1, 2] if direction == "right" else [2, 1]
    tree = build(RotateBST, keys)
    before = (shape_of(tree), tree.tree.copy(), tree.root)

    rotate = tree.rotate_left if direction == "left" else tree.rotate_right
    assert rotate(tree.root) is False

    assert (shape_of(tree), tree.root) == (before[0], before[2])
    assert (tree.tree == before[1]).all()


def test_rotating_the_sentinel_is_refused():
    tree = build(RotateBST, [1, 2, 3])
    assert tree.rotate_left(0) is False
    assert tree.rotate_right(0) is False


def test_kernels_report_status_and_root():
    tree = build(RotateBST, [1, 2])

    ok, root = left_rotation(tree.tree, tree.root, tree.root)
    assert int(ok) == 1
    assert tree.get_key(int(root)) == 2

    ok, same = left_rotation(tree.tree, int(root), int(root))
    assert int(ok) == 0
    assert int(same) == int(root)

    ok, root = right_rotation(tree.tree, int(root), int(root))
    assert int(ok) == 1
    assert tree.get_key(int(root)) == 1


def test_opposite_rotations_cancel_out():
    tree = build(RotateBST, [8, 4, 12, 2, 6, 10, 14])
    original = shape_of(tree)

    tree.rotate_right(tree.search(4))
    tree.rotate_left(tree.search(2))

    assert shape_of(tree) == original
    tree.validate()


def test_random_rotations_preserve_in_order_sequence(rng):
    keys = rng.sample(range(1000), 60)
    tree = build(RotateBST, keys)
    expected = sorted(keys)

    for _ in range(300):
        index = tree.search(rng.choice(keys))
        if rng.random() < 0.5:
            tree.rotate_left(index)
        else:
            tree.rotate_right(index)

        assert tree.keys() == expected

    tree.validate()
    assert dict(tree.items()) == {key: str(key) for key in keys}


@pytest.mark.parametrize("index", [-1, 5, 10 ** 8])
def test_rows_outside_the_arena_are_refused(index):
    tree = build(RotateBST, [1, 2, 3])
    before = tree.tree.copy()

    assert tree.rotate_left(index) is False
    assert tree.rotate_right(index) is False
    assert (tree.tree == before).all()
