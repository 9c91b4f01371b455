"""Order-statistic AVL tree that keeps values in ranking order."""

from __future__ import annotations

import copy as _copy
from typing import Any, Iterator, List, Optional, Tuple

from rankboard.cursor import Cursor, CursorMut
from rankboard.node import Node


def _compare(a: Any, b: Any) -> int:
    if a < b:
        return -1
    if b < a:
        return 1
    return 0


class Tree:
    """A balanced binary search tree with rank lookups.

    Index 0 is the largest value, so an index is a zero-based rank.
    Each value may appear only once.
    """

    def __init__(self) -> None:
        self._sentinel = Node(None, None, False)

    def __repr__(self) -> str:
        return f"Tree(len={len(self)}, height={self.height()})"

    @property
    def sentinel(self) -> Node:
        """The node above the root; the root is its right child."""
        return self._sentinel

    # ------------------------------------------------------------------ writes

    def insert(self, val: Any) -> bool:
        """Insert val; return False if an equal value is already present."""
        return self._insert_node(val) is not None

    def _insert_node(self, val: Any) -> Optional[Node]:
        root = self._sentinel.right
        if root is None:
            node = Node(val, self._sentinel, False)
            self._sentinel.right = node
            return node

        parent = root
        while True:
            order = _compare(val, parent.val)
            if order == 0:
                return None
            if order > 0:
                go_left = False
                if parent.right is None:
                    break
                parent = parent.right
            else:
                go_left = True
                if parent.left is None:
                    break
                parent = parent.left

        node = Node(val, parent, go_left)
        if go_left:
            parent.left = node
        else:
            parent.right = node
        self._fix_up(parent)
        return node

    def replace(self, old_val: Any, new_val: Any) -> Any:
        """Replace old_val by new_val and return the old value.

        Returns None when old_val is absent or new_val is already present.
        """
        node = self._sentinel.right
        index = 0
        while node is not None:
            order = _compare(old_val, node.val)
            if order == 0:
                index += node.right_count()
                result = self.replace_node(node, index, new_val)
                return None if result is None else result[0]
            if order > 0:
                node = node.right
            else:
                index += 1 + node.right_count()
                node = node.left
        return None

    def replace_node(
        self, node: Node, old_index: int, new_val: Any
    ) -> Optional[Tuple[Any, Node, int]]:
        """Replace the value held by node, which sits at old_index.

        Returns the old value, the node now holding new_val and its index,
        or None when new_val is already present.
        """
        new_index, found = self.index_of(new_val)
        if found:
            return None
        if new_index > old_index:
            new_index -= 1
        distance = abs(new_index - old_index)

        if distance == 0:
            old_val, node.val = node.val, new_val
            return old_val, node, new_index

        if distance <= self.height() // 5:
            nodes: List[Node] = [node]
            step = Node.prev_node if new_index > old_index else Node.next_node
            current = node
            for _ in range(distance):
                current = step(current)
                nodes.append(current)
            old_val = self._shift_values(nodes, new_val)
            return old_val, nodes[-1], new_index

        self.remove_node(node)
        new_node = self._insert_node(new_val)
        return node.val, new_node, new_index

    @staticmethod
    def _shift_values(nodes: List[Node], fill: Any) -> Any:
        if len(nodes) < 2:
            raise ValueError("Attempt to shift with 1 or fewer nodes!")
        for first, second in zip(nodes, nodes[1:]):
            first.val, second.val = second.val, first.val
        last = nodes[-1]
        old_val, last.val = last.val, fill
        return old_val

    def remove(self, val: Any) -> Any:
        """Remove the value equal to val and return it, or None if absent."""
        node = self._sentinel.right
        while node is not None:
            order = _compare(val, node.val)
            if order == 0:
                self.remove_node(node)
                return node.val
            node = node.right if order > 0 else node.left
        return None

    @staticmethod
    def _set_child(parent: Node, is_left: bool, child: Optional[Node]) -> None:
        if is_left:
            parent.left = child
        else:
            parent.right = child

    def remove_node(self, node: Node) -> None:
        """Unlink node from the tree and rebalance."""
        parent = node.parent
        if parent is None:
            raise ValueError("Cannot remove sentinel node!")

        if node.left is None or node.right is None:
            child = node.right if node.left is None else node.left
            self._set_child(parent, node.is_left_child, child)
            if child is not None:
                child.parent = parent
                child.is_left_child = node.is_left_child
            self._fix_up(parent)
            return

        # Two children: splice the in-order predecessor into this node's place.
        replacement = node.left
        while replacement.right is not None:
            replacement = replacement.right
        self.remove_node(replacement)

        parent = node.parent
        self._set_child(parent, node.is_left_child, replacement)
        replacement.parent = parent
        replacement.is_left_child = node.is_left_child

        replacement.left = node.left
        if replacement.left is not None:
            replacement.left.parent = replacement
        replacement.right = node.right
        if replacement.right is not None:
            replacement.right.parent = replacement

        replacement.count = node.count
        replacement.height = node.height

    def _fix_up(self, node: Node) -> None:
        while node.parent is not None:
            parent = node.parent
            if node.is_imbalanced():
                node.fix_imbalance()
            else:
                node.fix()
            node = parent

    def clear(self) -> None:
        self._sentinel.right = None

    # ------------------------------------------------------------------- reads

    def __contains__(self, val: Any) -> bool:
        node = self._sentinel.right
        while node is not None:
            order = _compare(val, node.val)
            if order == 0:
                return True
            node = node.right if order > 0 else node.left
        return False

    def __len__(self) -> int:
        return self._sentinel.right_count()

    def __iter__(self) -> Iterator[Any]:
        """Yield values from smallest to largest."""
        node = self._sentinel.next_node()
        while node.parent is not None:
            yield node.val
            node = node.next_node()

    def is_empty(self) -> bool:
        return self._sentinel.right is None

    def height(self) -> int:
        root = self._sentinel.right
        return 0 if root is None else root.height

    def index_of(self, val: Any) -> Tuple[int, bool]:
        """Return (number of values greater than val, whether val is present)."""
        node = self._sentinel.right
        if node is None:
            return 0, False
        index = 0
        while True:
            order = _compare(val, node.val)
            if order == 0:
                return index + node.right_count(), True
            if order > 0:
                if node.right is None:
                    return index, False
                node = node.right
            else:
                index += 1 + node.right_count()
                if node.left is None:
                    return index, False
                node = node.left

    def node_at_index(self, index: int) -> Optional[Node]:
        """Return the node at a zero-based index from the largest, or None."""
        if index < 0:
            return None
        node = self._sentinel.right
        remaining = index
        while node is not None:
            right = node.right_count()
            if remaining == right:
                return node
            if remaining < right:
                node = node.right
            else:
                remaining -= right + 1
                node = node.left
        return None

    def at_index(self, index: int) -> Any:
        node = self.node_at_index(index)
        return None if node is None else node.val

    # ------------------------------------------------------------ structure

    def copy(self) -> "Tree":
        """Return a tree with the same shape holding copies of the values."""
        new = Tree()
        root = self._sentinel.right
        if root is None:
            return new
        stack = [(root, new._sentinel, False)]
        while stack:
            source, parent, is_left = stack.pop()
            node = Node(_copy.copy(source.val), parent, is_left)
            node.count = source.count
            node.height = source.height
            self._set_child(parent, is_left, node)
            if source.right is not None:
                stack.append((source.right, node, False))
            if source.left is not None:
                stack.append((source.left, node, True))
        return new

    __copy__ = copy

    def validate(self) -> None:
        """Check links, ordering, counts and heights; raise ValueError if broken."""
        root = self._sentinel.right
        if root is None:
            return
        if root.parent is not self._sentinel or root.is_left_child:
            raise ValueError("Root is not linked as the sentinel's right child!")
        stack = [root]
        while stack:
            node = stack.pop()
            for child, is_left in ((node.left, True), (node.right, False)):
                if child is None:
                    continue
                if child.parent is not node:
                    side = "left" if is_left else "right"
                    raise ValueError(f"Parent does not agree with {side}!")
                if child.is_left_child != is_left:
                    raise ValueError("Is left child does not match if it is a left child!")
                order = _compare(child.val, node.val)
                if order == 0:
                    raise ValueError("Multiple equal nodes in tree!")
                if is_left and order > 0:
                    raise ValueError("Incorrect ordering! Node is left whilst being greater.")
                if not is_left and order < 0:
                    raise ValueError("Incorrect ordering! Node is right whilst being lesser.")
                stack.append(child)
            if node.count != 1 + node.left_count() + node.right_count():
                raise ValueError("Node count does not match its subtrees!")
            if node.height != 1 + max(node.left_height(), node.right_height()):
                raise ValueError("Node height does not match its subtrees!")

    # ---------------------------------------------------------------- cursors

    def _seek_node(self, val: Any) -> Optional[Tuple[Node, int]]:
        node = self._sentinel.right
        index = 0
        while node is not None:
            order = _compare(node.val, val)
            if order == 0:
                return node, index + node.right_count()
            if order < 0:
                node = node.right
            else:
                index += 1 + node.right_count()
                node = node.left
        return None

    def cursor(self) -> Cursor:
        return Cursor(self, self._sentinel, None)

    def seek_index(self, index: int) -> Optional[Cursor]:
        node = self.node_at_index(index)
        return None if node is None else Cursor(self, node, index)

    def seek_val(self, val: Any) -> Optional[Cursor]:
        found = self._seek_node(val)
        return None if found is None else Cursor(self, found[0], found[1])

    def cursor_mut(self) -> CursorMut:
        return CursorMut(self, self._sentinel, None)

    def seek_index_mut(self, index: int) -> Optional[CursorMut]:
        node = self.node_at_index(index)
        return None if node is None else CursorMut(self, node, index)

    def seek_val_mut(self, val: Any) -> Optional[CursorMut]:
        found = self._seek_node(val)
        return None if found is None else CursorMut(self, found[0], found[1])