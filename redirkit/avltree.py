"""A self-balancing AVL tree of unique items."""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterator
from typing import Any

__all__ = ["Visit", "AVLTree"]


class Visit(enum.Enum):
    """When a node is reported during a walk."""

    PREORDER = "preorder"
    POSTORDER = "postorder"
    ENDORDER = "endorder"
    LEAF = "leaf"


class _Node:
    __slots__ = ("item", "left", "right", "height")

    def __init__(self, item: Any) -> None:
        self.item = item
        self.left: _Node | None = None
        self.right: _Node | None = None
        self.height = 1


_MISSING = object()


def _h(node: _Node | None) -> int:
    return node.height if node else 0


def _update(node: _Node) -> None:
    node.height = max(_h(node.left), _h(node.right)) + 1


def _delta(node: _Node) -> int:
    return _h(node.left) - _h(node.right)


def _rotl(node: _Node) -> _Node:
    r = node.right
    node.right = r.left
    r.left = node
    _update(node)
    _update(r)
    return r


def _rotr(node: _Node) -> _Node:
    l = node.left
    node.left = l.right
    l.right = node
    _update(node)
    _update(l)
    return l


def _balance(node: _Node) -> _Node:
    d = _delta(node)
    if d < -1:
        if _delta(node.right) > 0:
            node.right = _rotr(node.right)
        return _rotl(node)
    if d > 1:
        if _delta(node.left) < 0:
            node.left = _rotl(node.left)
        return _rotr(node)
    _update(node)
    return node


class AVLTree:
    """Ordered set of items, compared through an optional ``key`` function."""

    def __init__(self, key: Callable[[Any], Any] | None = None) -> None:
        self._key = key if key is not None else (lambda item: item)
        self._root: _Node | None = None
        self._size = 0

    def _cmp(self, a: Any, b: Any) -> int:
        ka, kb = self._key(a), self._key(b)
        if ka == kb:
            return 0
        return -1 if ka < kb else 1

    def _find_node(self, item: Any) -> _Node | None:
        node = self._root
        while node is not None:
            c = self._cmp(item, node.item)
            if c == 0:
                return node
            node = node.left if c < 0 else node.right
        return None

    def insert(self, item: Any) -> Any:
        """Insert ``item`` unless an equal one exists; return the stored item."""
        stored: list[Any] = []

        def _insert(node: _Node | None) -> _Node:
            if node is None:
                stored.append(item)
                self._size += 1
                return _Node(item)
            c = self._cmp(item, node.item)
            if c == 0:
                stored.append(node.item)
                return node
            if c < 0:
                node.left = _insert(node.left)
            else:
                node.right = _insert(node.right)
            return _balance(node)

        self._root = _insert(self._root)
        return stored[0]

    def find(self, item: Any) -> Any:
        """Return the stored item equal to ``item``, or ``None``."""
        node = self._find_node(item)
        return node.item if node is not None else None

    def delete(self, item: Any) -> Any:
        """Remove the item equal to ``item``; return it, or ``None`` if absent."""

        def _remove_rightmost(node: _Node) -> tuple[_Node | None, _Node]:
            if node.right is None:
                return node.left, node
            node.right, rightmost = _remove_rightmost(node.right)
            return _balance(node), rightmost

        def _remove(node: _Node | None) -> tuple[_Node | None, Any]:
            if node is None:
                return None, _MISSING
            c = self._cmp(item, node.item)
            if c == 0:
                if node.left is None:
                    return node.right, node.item
                rest, replacement = _remove_rightmost(node.left)
                replacement.left = rest
                replacement.right = node.right
                return _balance(replacement), node.item
            if c < 0:
                node.left, removed = _remove(node.left)
            else:
                node.right, removed = _remove(node.right)
            if removed is _MISSING:
                return node, removed
            return _balance(node), removed

        self._root, removed = _remove(self._root)
        if removed is _MISSING:
            return None
        self._size -= 1
        return removed

    def walk(self) -> Iterator[tuple[Any, Visit, int]]:
        """Yield ``(item, visit, depth)`` in the classic twalk order."""

        def _walk(node: _Node | None, depth: int) -> Iterator[tuple[Any, Visit, int]]:
            if node is None:
                return
            if node.left is None and node.right is None:
                yield node.item, Visit.LEAF, depth
                return
            yield node.item, Visit.PREORDER, depth
            yield from _walk(node.left, depth + 1)
            yield node.item, Visit.POSTORDER, depth
            yield from _walk(node.right, depth + 1)
            yield node.item, Visit.ENDORDER, depth

        yield from _walk(self._root, 0)

    def height(self) -> int:
        """Height of the tree; 0 when empty."""
        return _h(self._root)

    def __len__(self) -> int:
        return self._size

    def __contains__(self, item: Any) -> bool:
        return self._find_node(item) is not None

    def __iter__(self) -> Iterator[Any]:
        for item, visit, _depth in self.walk():
            if visit in (Visit.LEAF, Visit.POSTORDER):
                yield item