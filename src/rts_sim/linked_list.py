"""
Arena-backed intrusive doubly-linked list holding one ensemble of searchers.

Slots live in two parallel Python lists (``nodes`` for link metadata and
``contents`` for the stored values) addressed by plain integer indices. A
deleted slot is only unlinked and marked dead; it is never reused, so indices
stay valid for the lifetime of the container and ``push`` always appends.

Two independent cursors are provided:

- the single cursor (``begin_single_traversal`` / ``next_single``) visits every
  live slot in list order. The current element may be deleted while
  traversing because the cursor has already moved past it.
- the pair cursor (``begin_pair_traversal`` / ``next_pair``) visits every
  unordered pair ``(i, j)`` of live slots with ``i`` before ``j``, once each,
  which is the linked form of ``for i: for j > i``. Elements deleted between
  two results are skipped afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Protocol

from .errors import InvalidIndex


class Mergeable(Protocol):
    size: int

    def add_size(self, size: int) -> None: ...


@dataclass
class Node:
    prev: int | None = None
    next: int | None = None
    alive: bool = True


class LinkedList:
    def __init__(self, contents: Iterable[Any] = ()):
        self.nodes: list[Node] = []
        self.contents: list[Any] = []
        self.head: int | None = None
        self.tail: int | None = None
        self._num_alive = 0
        self._cursor: int | None = None
        self._outer: int | None = None
        self._inner: int | None = None
        for value in contents:
            self.push(value)

    # ----------------------------------------------------------------- queries

    def __len__(self) -> int:
        return self._num_alive

    @property
    def capacity(self) -> int:
        """Number of slots ever allocated, dead ones included."""
        return len(self.contents)

    def is_alive(self, idx: int) -> bool:
        return 0 <= idx < len(self.nodes) and self.nodes[idx].alive

    def get(self, idx: int) -> Any:
        self._check_live(idx)
        return self.contents[idx]

    def indices(self) -> Iterator[int]:
        """Live indices in list order (independent of the shared cursors)."""
        idx = self.head
        while idx is not None:
            yield idx
            idx = self.nodes[idx].next

    def __iter__(self) -> Iterator[Any]:
        for idx in self.indices():
            yield self.contents[idx]

    def _check_live(self, idx: int) -> None:
        if not 0 <= idx < len(self.nodes):
            raise InvalidIndex(
                f"index {idx} out of range for container with {len(self.nodes)} slots"
            )
        if not self.nodes[idx].alive:
            raise InvalidIndex(f"index {idx} refers to a deleted slot")

    def _first_live(self, idx: int | None) -> int | None:
        # Dead nodes keep their last links, so following them reaches the
        # next survivor in list order.
        while idx is not None and not self.nodes[idx].alive:
            idx = self.nodes[idx].next
        return idx

    # --------------------------------------------------------------- structure

    def push(self, value: Any) -> int:
        idx = len(self.contents)
        self.contents.append(value)
        self.nodes.append(Node(prev=self.tail, next=None, alive=True))
        if self.tail is None:
            self.head = idx
        else:
            self.nodes[self.tail].next = idx
        self.tail = idx
        self._num_alive += 1
        return idx

    def delete(self, idx: int) -> None:
        self._check_live(idx)
        node = self.nodes[idx]
        node.alive = False
        if node.prev is None:
            self.head = node.next
        else:
            self.nodes[node.prev].next = node.next
        if node.next is None:
            self.tail = node.prev
        else:
            self.nodes[node.next].prev = node.prev
        self._num_alive -= 1

    def connect_all(self) -> None:
        """Revive and relink every slot in index order, as if freshly pushed."""
        n = len(self.nodes)
        for idx, node in enumerate(self.nodes):
            node.prev = idx - 1 if idx > 0 else None
            node.next = idx + 1 if idx + 1 < n else None
            node.alive = True
        self.head = 0 if n else None
        self.tail = n - 1 if n else None
        self._num_alive = n
        self._cursor = None
        self._outer = None
        self._inner = None

    def merge(self, i: int, j: int) -> None:
        """Fold slot ``j`` into slot ``i``: accumulate its size, then delete it."""
        if i == j:
            raise InvalidIndex(f"cannot merge slot {i} with itself")
        self._check_live(i)
        self._check_live(j)
        survivor: Mergeable = self.contents[i]
        absorbed: Mergeable = self.contents[j]
        survivor.add_size(absorbed.size)
        self.delete(j)

    # ---------------------------------------------------------- single cursor

    def begin_single_traversal(self) -> None:
        self._cursor = self.head

    def next_single(self) -> tuple[int, Any] | None:
        idx = self._first_live(self._cursor)
        if idx is None:
            self._cursor = None
            return None
        self._cursor = self.nodes[idx].next
        return idx, self.contents[idx]

    def iter_single(self) -> Iterator[tuple[int, Any]]:
        self.begin_single_traversal()
        while (item := self.next_single()) is not None:
            yield item

    # ------------------------------------------------------------ pair cursor

    def begin_pair_traversal(self) -> None:
        self._outer = self.head
        self._inner = None if self.head is None else self.nodes[self.head].next

    def next_pair(self) -> tuple[int, Any, int, Any] | None:
        while True:
            a = self._outer
            if a is None:
                return None
            if not self.nodes[a].alive:
                a = self._first_live(a)
                self._outer = a
                self._inner = None if a is None else self.nodes[a].next
                continue
            b = self._first_live(self._inner)
            if b is None:
                nxt = self._first_live(self.nodes[a].next)
                if nxt is None:
                    self._outer = None
                    return None
                self._outer = nxt
                self._inner = self.nodes[nxt].next
                continue
            self._inner = self.nodes[b].next
            return a, self.contents[a], b, self.contents[b]

    def iter_pairs(self) -> Iterator[tuple[int, Any, int, Any]]:
        self.begin_pair_traversal()
        while (item := self.next_pair()) is not None:
            yield item


__all__ = ["Node", "LinkedList", "Mergeable"]
