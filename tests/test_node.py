import pytest

from rankboard.node import Node


def attach(parent, val, left):
    node = Node(val, parent, left)
    if left:
        parent.left = node
    else:
        parent.right = node
    return node


def in_order(sentinel):
    values = []
    node = sentinel.next_node()
    while node is not sentinel:
        values.append(node.val)
        node = node.next_node()
    return values


def reverse_order(sentinel):
    values = []
    node = sentinel.prev_node()
    while node is not sentinel:
        values.append(node.val)
        node = node.prev_node()
    return values


def check_links(node):
    for child, is_left in ((node.left, True), (node.right, False)):
        if child is not None:
            assert child.parent is node
            assert child.is_left_child is is_left
            check_links(child)
    assert node.count == 1 + node.left_count() + node.right_count()
    assert node.height == 1 + max(node.left_height(), node.right_height())


def right_chain():
    sentinel = Node(None, None, False)
    n1 = attach(sentinel, 1, False)
    n2 = attach(n1, 2, False)
    n3 = attach(n2, 3, False)
    for node in (n3, n2, n1):
        node.fix()
    return sentinel, n1, n2, n3


def test_sentinel_starts_empty():
    sentinel = Node(None, None, False)
    assert sentinel.count == 0
    assert sentinel.height == 0
    assert sentinel.next_node() is sentinel
    assert sentinel.prev_node() is sentinel


def test_fix_counts_and_heights():
    sentinel, n1, n2, n3 = right_chain()
    assert n1.count == 3
    assert n1.left_count() == 0
    assert n1.right_count() == n2.count
    assert n1.right_height() == n2.height
    assert n1.height == n2.height + 1


def test_imbalance_detected_and_fixed_single_rotation():
    sentinel, n1, n2, n3 = right_chain()
    assert n1.is_imbalanced()
    n1.fix_imbalance()
    assert sentinel.right is n2
    assert n2.left is n1
    assert n2.right is n3
    assert n2.parent is sentinel
    assert not n2.is_imbalanced()
    check_links(n2)
    assert in_order(sentinel) == [1, 2, 3]


def test_double_rotation_on_zigzag():
    sentinel = Node(None, None, False)
    n3 = attach(sentinel, 3, False)
    n1 = attach(n3, 1, True)
    n2 = attach(n1, 2, False)
    for node in (n2, n1, n3):
        node.fix()
    assert n3.is_imbalanced()
    n3.fix_imbalance()
    assert sentinel.right is n2
    assert n2.left is n1
    assert n2.right is n3
    check_links(n2)
    assert in_order(sentinel) == [1, 2, 3]


def test_rotate_left_child_up():
    sentinel = Node(None, None, False)
    n5 = attach(sentinel, 5, False)
    n3 = attach(n5, 3, True)
    n4 = attach(n3, 4, False)
    n7 = attach(n5, 7, False)
    for node in (n4, n3, n7, n5):
        node.fix()
    n3.rotate()
    assert sentinel.right is n3
    assert n3.right is n5
    assert n5.left is n4
    assert n5.right is n7
    check_links(n3)
    assert in_order(sentinel) == [3, 4, 5, 7]


def test_next_and_prev_walk_whole_tree():
    sentinel = Node(None, None, False)
    n4 = attach(sentinel, 4, False)
    n2 = attach(n4, 2, True)
    n6 = attach(n4, 6, False)
    n1 = attach(n2, 1, True)
    n3 = attach(n2, 3, False)
    n5 = attach(n6, 5, True)
    n7 = attach(n6, 7, False)
    for node in (n1, n3, n5, n7, n2, n6, n4):
        node.fix()
    check_links(n4)
    forward = in_order(sentinel)
    assert forward == sorted(forward)
    assert len(forward) == n4.count
    assert reverse_order(sentinel) == list(reversed(forward))


def test_rotate_sentinel_raises():
    sentinel = Node(None, None, False)
    with pytest.raises(RuntimeError):
        sentinel.rotate()


def test_rotate_root_raises():
    sentinel = Node(None, None, False)
    root = attach(sentinel, 1, False)
    with pytest.raises(RuntimeError):
        root.rotate()


def test_fix_imbalance_on_balanced_node_raises():
    sentinel = Node(None, None, False)
    root = attach(sentinel, 2, False)
    attach(root, 1, True)
    attach(root, 3, False)
    root.left.fix()
    root.right.fix()
    root.fix()
    assert not root.is_imbalanced()
    with pytest.raises(RuntimeError):
        root.fix_imbalance()