"""Cursors that walk an order-statistic tree by value or by shape."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from rankboard.node import Node

if TYPE_CHECKING:
    from rankboard.tree import Tree


class Cursor:
    """A read-only position in a tree.

    Index 0 is the largest value, so moving to the next (larger) value
    lowers the index and moving to the previous (smaller) value raises it.
    The cursor sits on the sentinel when it is past either end.
    """

    def __init__(self, tree: "Tree", node: Node, index: Optional[int] = None) -> None:
        self._tree = tree
        self._node = node
        self._index = index
        sentinel = node
        while sentinel.parent is not None:
            sentinel = sentinel.parent
        self._sentinel = sentinel

    def __repr__(self) -> str:
        return f"{type(self).__name__}(value={self.value()!r}, index={self._index!r})"

    def _land(self, node: Node, index: Optional[int]) -> Any:
        self._node = node
        if node.parent is None:
            self._index = None
            return None
        self._index = index
        return node.val

    def move_next(self) -> Any:
        """Move to the next larger value; from the end, move to the smallest."""
        was_at_end = self.is_at_end()
        node = self._node.next_node()
        if self._index is not None:
            index = self._index - 1
        elif was_at_end:
            index = self._sentinel.right_count() - 1
        else:
            index = None
        return self._land(node, index)

    def move_prev(self) -> Any:
        """Move to the next smaller value; from the end, move to the largest."""
        was_at_end = self.is_at_end()
        node = self._node.prev_node()
        if self._index is not None:
            index = self._index + 1
        elif was_at_end:
            index = 0
        else:
            index = None
        return self._land(node, index)

    def move_right(self) -> Any:
        """Move to the right child; from the sentinel, this is the root."""
        was_at_end = self.is_at_end()
        node = self._node.right if self._node.right is not None else self._sentinel
        if node.parent is None:
            return self._land(node, None)
        if self._index is not None:
            index = self._index - 1 - node.left_count()
        elif was_at_end:
            index = node.right_count()
        else:
            index = None
        return self._land(node, index)

    def move_left(self) -> Any:
        """Move to the left child, or to the end if there is none."""
        node = self._node.left if self._node.left is not None else self._sentinel
        if node.parent is None:
            return self._land(node, None)
        index = None if self._index is None else self._index + 1 + node.right_count()
        return self._land(node, index)

    def move_parent(self) -> Any:
        """Move to the parent node; from the root this reaches the end."""
        previous = self._node
        node = previous.parent if previous.parent is not None else previous
        if node.parent is None:
            return self._land(node, None)
        if self._index is None:
            index = None
        elif previous.is_left_child:
            index = self._index - 1 - previous.right_count()
        else:
            index = self._index + 1 + previous.left_count()
        return self._land(node, index)

    def index(self) -> Optional[int]:
        """Return the zero-based rank of the current value, or None at the end."""
        if self._index is None and not self.is_at_end():
            node = self._node
            index = node.right_count()
            while node.parent is not None and node.parent.parent is not None:
                if node.is_left_child:
                    index += 1 + node.parent.right_count()
                node = node.parent
            self._index = index
        return self._index

    def value(self) -> Any:
        return None if self.is_at_end() else self._node.val

    def is_at_end(self) -> bool:
        return self._node.parent is None

    def has_left(self) -> bool:
        return self._node.left is not None

    def has_right(self) -> bool:
        return self._node.right is not None

    def is_root(self) -> bool:
        parent = self._node.parent
        return parent is not None and parent.parent is None

    def height(self) -> Optional[int]:
        return None if self.is_at_end() else self._node.height

    def tree(self) -> "Tree":
        return self._tree

    def copy(self) -> "Cursor":
        """Return an independent cursor at the same position."""
        return type(self)(self._tree, self._node, self._index)


class CursorMut(Cursor):
    """A cursor that can also delete and replace values in its tree."""

    def delete_next(self) -> Any:
        """Remove the next larger value and return it, or None if there is none."""
        target = self._node.next_node()
        if target.parent is None:
            return None
        self._tree.remove_node(target)
        if self._index is not None:
            self._index -= 1
        return target.val

    def delete_prev(self) -> Any:
        """Remove the next smaller value and return it, or None if there is none."""
        target = self._node.prev_node()
        if target.parent is None:
            return None
        self._tree.remove_node(target)
        return target.val

    def replace(self, val: Any) -> Any:
        """Replace the current value, following it to its new place.

        Returns the old value, or None at the end or when the new value
        is already in the tree.
        """
        index = self.index()
        if index is None:
            return None
        result = self._tree.replace_node(self._node, index, val)
        if result is None:
            return None
        old_val, new_node, new_index = result
        self._node = new_node
        self._index = new_index
        return old_val