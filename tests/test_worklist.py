import pytest

from extraction_gym.worklist import UniqueQueue


def test_pops_in_insertion_order():
    queue = UniqueQueue()
    queue.extend(["a", "b", "c"])
    assert [queue.pop() for _ in range(3)] == ["a", "b", "c"]


def test_duplicates_are_ignored_while_waiting():
    queue = UniqueQueue()
    queue.extend(["a", "b", "a", "b", "a"])
    assert len(queue) == 2
    assert queue.pop() == "a"
    assert queue.pop() == "b"
    assert queue.is_empty()


def test_element_can_return_after_pop():
    queue = UniqueQueue()
    queue.insert("a")
    queue.insert("b")
    assert queue.pop() == "a"
    queue.insert("a")
    assert [queue.pop(), queue.pop()] == ["b", "a"]


def test_pop_from_empty_raises():
    queue = UniqueQueue()
    assert queue.is_empty()
    with pytest.raises(IndexError):
        queue.pop()


def test_truthiness_follows_length():
    queue = UniqueQueue()
    assert not queue
    queue.insert(7)
    assert queue
    assert len(queue) == 1
    queue.pop()
    assert not queue