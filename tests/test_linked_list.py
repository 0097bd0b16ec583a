"""
Tests for the arena-backed searcher container.
"""

import itertools
from dataclasses import dataclass

import pytest

from rts_sim import InvalidIndex, LinkedList


@dataclass
class Cluster:
    size: int = 1

    def add_size(self, size: int) -> None:
        self.size += size


def single_indices(lst: LinkedList) -> list:
    return [idx for idx, _ in lst.iter_single()]


def pair_indices(lst: LinkedList) -> list:
    return [(i, j) for i, _, j, _ in lst.iter_pairs()]


def test_push_links_in_order():
    lst = LinkedList()
    assert lst.head is None and lst.tail is None
    for k in range(4):
        assert lst.push(k * 10) == k
    assert lst.head == 0 and lst.tail == 3
    assert single_indices(lst) == [0, 1, 2, 3]
    assert list(lst) == [0, 10, 20, 30]
    assert len(lst) == 4


@pytest.mark.parametrize("n", [0, 1, 2, 3, 7, 12])
def test_pair_enumeration_is_complete(n):
    lst = LinkedList(range(n))
    pairs = pair_indices(lst)
    assert len(pairs) == n * (n - 1) // 2
    assert len(set(pairs)) == len(pairs)
    assert all(i < j for i, j in pairs)
    assert pairs == list(itertools.combinations(range(n), 2))


def test_pair_enumeration_skips_deleted():
    lst = LinkedList(range(6))
    lst.delete(0)
    lst.delete(3)
    pairs = pair_indices(lst)
    assert pairs == list(itertools.combinations([1, 2, 4, 5], 2))


@pytest.mark.parametrize("victim", [0, 2, 4])
def test_delete_preserves_relative_order(victim):
    lst = LinkedList("abcde")
    lst.delete(victim)
    expected = [i for i in range(5) if i != victim]
    assert single_indices(lst) == expected
    assert lst.head == expected[0]
    assert lst.tail == expected[-1]
    assert len(lst) == 4
    assert lst.capacity == 5


def test_delete_everything_empties_list():
    lst = LinkedList(range(3))
    for idx in (1, 0, 2):
        lst.delete(idx)
    assert lst.head is None and lst.tail is None
    assert single_indices(lst) == []
    assert pair_indices(lst) == []


def test_delete_invalid_index():
    lst = LinkedList(range(3))
    with pytest.raises(InvalidIndex):
        lst.delete(5)
    with pytest.raises(InvalidIndex):
        lst.delete(-1)
    lst.delete(1)
    with pytest.raises(InvalidIndex):
        lst.delete(1)
    with pytest.raises(IndexError):
        lst.get(1)


def test_delete_current_during_single_traversal():
    lst = LinkedList(range(6))
    seen = []
    lst.begin_single_traversal()
    while (item := lst.next_single()) is not None:
        idx, _ = item
        seen.append(idx)
        if idx % 2 == 0:
            lst.delete(idx)
    assert seen == [0, 1, 2, 3, 4, 5]
    assert single_indices(lst) == [1, 3, 5]


def test_single_traversal_is_restartable():
    lst = LinkedList(range(4))
    lst.begin_single_traversal()
    lst.next_single()
    lst.next_single()
    assert single_indices(lst) == [0, 1, 2, 3]


def test_deletion_between_pairs_is_observed():
    lst = LinkedList(range(4))
    lst.begin_pair_traversal()
    first = lst.next_pair()
    assert (first[0], first[2]) == (0, 1)
    lst.delete(2)
    rest = []
    while (item := lst.next_pair()) is not None:
        rest.append((item[0], item[2]))
    assert rest == [(0, 3), (1, 3)]


def test_merge_conserves_size():
    lst = LinkedList([Cluster(1), Cluster(2), Cluster(3)])
    lst.merge(0, 2)
    assert lst.get(0).size == 4
    assert not lst.is_alive(2)
    assert single_indices(lst) == [0, 1]
    assert pair_indices(lst) == [(0, 1)]
    lst.merge(1, 0)
    assert lst.get(1).size == 6
    assert single_indices(lst) == [1]


def test_merge_errors():
    lst = LinkedList([Cluster(), Cluster(), Cluster()])
    with pytest.raises(InvalidIndex):
        lst.merge(1, 1)
    lst.delete(2)
    with pytest.raises(InvalidIndex):
        lst.merge(0, 2)
    with pytest.raises(InvalidIndex):
        lst.merge(2, 0)
    assert lst.get(0).size == 1


def test_merge_during_pair_traversal():
    lst = LinkedList([Cluster() for _ in range(5)])
    for i, _, j, _ in lst.iter_pairs():
        if i == 0:
            lst.merge(i, j)
    assert lst.get(0).size == 5
    assert single_indices(lst) == [0]


def test_connect_all_revives_without_reclaiming():
    lst = LinkedList(range(4))
    lst.delete(1)
    lst.delete(3)
    lst.connect_all()
    assert single_indices(lst) == [0, 1, 2, 3]
    assert len(lst) == 4
    lst.delete(0)
    lst.push(99)
    # Dead slots are never reused; push always appends.
    assert lst.capacity == 5
    assert single_indices(lst) == [1, 2, 3, 4]
