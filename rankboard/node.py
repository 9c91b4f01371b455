"""Node of the order-statistic AVL tree that backs a leaderboard."""

from __future__ import annotations

from typing import Any, Optional


class Node:
    """A tree node that tracks its subtree size and height.

    A node whose ``parent`` is ``None`` is the sentinel. It sits above the
    root, which is always its right child.
    """

    __slots__ = ("count", "height", "left", "right", "parent", "is_left_child", "val")

    def __init__(self, val: Any, parent: Optional["Node"], is_left_child: bool) -> None:
        is_sentinel = parent is None
        self.count = 0 if is_sentinel else 1
        self.height = 0 if is_sentinel else 1
        self.left: Optional[Node] = None
        self.right: Optional[Node] = None
        self.parent = parent
        self.is_left_child = is_left_child
        self.val = val

    def __repr__(self) -> str:
        return f"Node({self.val!r}, count={self.count}, height={self.height})"

    @property
    def is_sentinel(self) -> bool:
        return self.parent is None

    def left_height(self) -> int:
        return 0 if self.left is None else self.left.height

    def right_height(self) -> int:
        return 0 if self.right is None else self.right.height

    def left_count(self) -> int:
        return 0 if self.left is None else self.left.count

    def right_count(self) -> int:
        return 0 if self.right is None else self.right.count

    def fix_height(self) -> None:
        self.height = 1 + max(self.left_height(), self.right_height())

    def fix_count(self) -> None:
        self.count = 1 + self.left_count() + self.right_count()

    def fix(self) -> None:
        """Recompute count and height from the children."""
        self.fix_count()
        self.fix_height()

    def is_imbalanced(self) -> bool:
        return abs(self.left_height() - self.right_height()) > 1

    def fix_imbalance(self) -> None:
        """Restore balance at this node with a single or double rotation."""
        left_h = self.left_height()
        right_h = self.right_height()
        if left_h == right_h:
            raise RuntimeError("Heights are equal for imbalance")
        if left_h > right_h:
            left = self.left
            if left.left_height() >= left.right_height():
                target, zag = left, False
            else:
                target, zag = left.right, True
        else:
            right = self.right
            if right.right_height() >= right.left_height():
                target, zag = right, False
            else:
                target, zag = right.left, True

        target.rotate()
        if zag:
            target.rotate()

    def rotate(self) -> None:
        """Rotate this node up into its parent's place."""
        parent = self.parent
        if parent is None:
            raise RuntimeError("Attempt to rotate about sentinel!")
        grandparent = parent.parent
        if grandparent is None:
            raise RuntimeError("Attempt to rotate about root node!")

        was_left_child = self.is_left_child

        if parent.is_left_child:
            grandparent.left = self
            self.is_left_child = True
        else:
            grandparent.right = self
            self.is_left_child = False

        if was_left_child:
            parent.left = self.right
            if self.right is not None:
                self.right.parent = parent
                self.right.is_left_child = True
            self.right = parent
            parent.parent = self
            parent.is_left_child = False
        else:
            parent.right = self.left
            if self.left is not None:
                self.left.parent = parent
                self.left.is_left_child = False
            self.left = parent
            parent.parent = self
            parent.is_left_child = True

        self.parent = grandparent

        parent.fix()
        self.fix()

    def next_node(self) -> "Node":
        """Return the in-order successor; past the largest value this is the sentinel.

        From the sentinel this is the smallest node, or the sentinel itself
        when the tree is empty.
        """
        if self.right is not None:
            node = self.right
            while node.left is not None:
                node = node.left
            return node

        if self.parent is None:
            return self

        node = self.parent
        is_left = self.is_left_child
        while not is_left:
            is_left = node.is_left_child
            if node.parent is None:
                return node
            node = node.parent
        return node

    def prev_node(self) -> "Node":
        """Return the in-order predecessor; before the smallest value this is the sentinel.

        From the sentinel this is the largest node, or the sentinel itself
        when the tree is empty.
        """
        if self.parent is None:
            if self.right is None:
                return self
            node = self.right
            while node.right is not None:
                node = node.right
            return node

        if self.left is not None:
            node = self.left
            while node.right is not None:
                node = node.right
            return node

        node = self.parent
        is_left = self.is_left_child
        while is_left:
            is_left = node.is_left_child
            if node.parent is None:
                return node
            node = node.parent
        return node