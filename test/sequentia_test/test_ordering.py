"""
Unit tests for sorting sequences.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from typing import Any, NamedTuple

import pytest

from sequentia import IteratorState, OrderedSequence
from sequentia.core import SortKey, compare_natural, compute_keys, sort_indices
from sequentia.source import IterableSequence

from pytools.expression import freeze
from pytools.expression.atomic import Id

log = logging.getLogger(__name__)


class Person(NamedTuple):
    name: str
    age: int


PEOPLE = [
    Person("carol", 35),
    Person("alice", 30),
    Person("bob", 35),
    Person("dave", 30),
    Person("erin", 25),
]


class TrackingIterable:
    """
    An iterable recording how often it was iterated, optionally failing after all
    its elements were produced.
    """

    def __init__(self, *elements: Any, error: Exception | None = None) -> None:
        self.elements = elements
        self.error = error
        self.iterations = 0
        self.closed = 0

    def __iter__(self) -> Iterator[Any]:
        self.iterations += 1
        try:
            yield from self.elements
            if self.error is not None:
                raise self.error
        finally:
            self.closed += 1


def _name(person: Person) -> str:
    return person.name


def _age(person: Person) -> int:
    return person.age


@pytest.mark.asyncio
async def test_order_by() -> None:
    numbers = IterableSequence([3, 1, 4, 1, 5, 9, 2, 6])

    assert await numbers.order_by(lambda x: x).ato_list() == [1, 1, 2, 3, 4, 5, 6, 9]
    assert await numbers.order_by_descending(lambda x: x).ato_list() == [
        9,
        6,
        5,
        4,
        3,
        2,
        1,
        1,
    ]

    # equal values keep their upstream order, in both directions
    tagged = IterableSequence(list(enumerate([3, 1, 4, 1, 5, 9, 2, 6])))
    by_value = tagged.order_by(lambda tag_value: tag_value[1])
    assert [tag for tag, _ in await by_value.ato_list()] == [1, 3, 6, 0, 2, 4, 7, 5]
    by_value = tagged.order_by_descending(lambda tag_value: tag_value[1])
    assert [tag for tag, _ in await by_value.ato_list()] == [5, 7, 4, 2, 0, 6, 1, 3]

    # sorting is deterministic
    ordered = numbers.order_by(lambda x: x % 3)
    assert await ordered.ato_list() == await ordered.ato_list()

    # empty and single-element sources
    assert await IterableSequence([]).order_by(lambda x: x).ato_list() == []
    assert await IterableSequence(["a"]).order_by(len).ato_list() == ["a"]


@pytest.mark.asyncio
async def test_stability() -> None:
    people = IterableSequence(PEOPLE)

    # elements with equal keys keep their relative order
    assert await people.order_by(_age).ato_list() == [
        Person("erin", 25),
        Person("alice", 30),
        Person("dave", 30),
        Person("carol", 35),
        Person("bob", 35),
    ]

    # including in descending order
    assert await people.order_by_descending(_age).ato_list() == [
        Person("carol", 35),
        Person("bob", 35),
        Person("alice", 30),
        Person("dave", 30),
        Person("erin", 25),
    ]

    # and if all keys are equal
    assert await people.order_by(lambda person: 0).ato_list() == PEOPLE


@pytest.mark.asyncio
async def test_then_by() -> None:
    people = IterableSequence(PEOPLE)

    assert await people.order_by(_age).then_by(_name).ato_list() == [
        Person("erin", 25),
        Person("alice", 30),
        Person("dave", 30),
        Person("bob", 35),
        Person("carol", 35),
    ]

    # a descending tie-break reverses only its own level
    assert await people.order_by(_age).then_by_descending(_name).ato_list() == [
        Person("erin", 25),
        Person("dave", 30),
        Person("alice", 30),
        Person("carol", 35),
        Person("bob", 35),
    ]

    # an ascending tie-break after a descending primary key
    assert await people.order_by_descending(_age).then_by(_name).ato_list() == [
        Person("bob", 35),
        Person("carol", 35),
        Person("alice", 30),
        Person("dave", 30),
        Person("erin", 25),
    ]

    # refining an ordered sequence leaves it unchanged
    by_age = people.order_by(_age)
    by_age_then_name = by_age.then_by(_name)
    assert by_age.sort_key.depth == 1
    assert by_age_then_name.sort_key.depth == 2
    assert by_age_then_name.sort_key.parent is by_age.sort_key
    assert await by_age.ato_list() == await people.order_by(_age).ato_list()


@pytest.mark.asyncio
async def test_three_levels() -> None:
    words = IterableSequence(["bb", "Ab", "ab", "a", "BA", "b", "aa"])

    ordered = (
        words.order_by(len)
        .then_by(str.lower)
        .then_by_descending(lambda word: word)
    )
    assert await ordered.ato_list() == ["a", "b", "aa", "ab", "Ab", "BA", "bb"]


@pytest.mark.asyncio
async def test_comparer() -> None:
    def _compare_case_insensitive(x: str, y: str) -> int:
        return compare_natural(x.lower(), y.lower())

    words = IterableSequence(["b", "C", "a", "B"])

    assert await words.order_by(lambda word: word).ato_list() == ["B", "C", "a", "b"]

    # equivalent keys keep their relative order
    ordered = words.order_by(lambda word: word, _compare_case_insensitive)
    assert await ordered.ato_list() == ["a", "b", "B", "C"]

    ordered = words.order_by_descending(lambda word: word, _compare_case_insensitive)
    assert await ordered.ato_list() == ["C", "b", "B", "a"]


@pytest.mark.asyncio
async def test_none_keys() -> None:
    values = IterableSequence([2, None, 1, None])

    assert await values.order_by(lambda x: x).ato_list() == [None, None, 1, 2]
    assert await values.order_by_descending(lambda x: x).ato_list() == [
        2,
        1,
        None,
        None,
    ]


@pytest.mark.asyncio
async def test_async_key_selector() -> None:
    calls: list[tuple[str, int]] = []
    active = 0
    max_active = 0

    async def _track(level: str, x: int) -> None:
        nonlocal active, max_active
        calls.append((level, x))
        active += 1
        max_active = max(max_active, active)
        await asyncio.sleep(0)
        active -= 1

    async def _parity(x: int) -> int:
        await _track("parity", x)
        return x % 2

    async def _negated(x: int) -> int:
        await _track("negated", x)
        return -x

    ordered = IterableSequence([3, 4, 1, 2]).order_by(_parity).then_by(_negated)
    assert await ordered.ato_list() == [4, 2, 3, 1]

    # keys are computed in upstream order, level by level, one at a time
    assert calls == [
        ("parity", 3),
        ("negated", 3),
        ("parity", 4),
        ("negated", 4),
        ("parity", 1),
        ("negated", 1),
        ("parity", 2),
        ("negated", 2),
    ]
    assert max_active == 1

    # synchronous and asynchronous key selectors can be mixed
    ordered = IterableSequence([3, 4, 1, 2]).order_by(lambda x: x % 2)
    assert await ordered.then_by_descending(_negated).ato_list() == [2, 4, 1, 3]


@pytest.mark.asyncio
async def test_laziness() -> None:
    source = TrackingIterable(3, 1, 2)
    key_calls = 0

    def _key(x: int) -> int:
        nonlocal key_calls
        key_calls += 1
        return x

    ordered = IterableSequence(source).order_by(_key).then_by(_key)
    iterator = ordered.get_iterator()

    # neither composing nor creating an iterator does any work
    assert source.iterations == 0
    assert key_calls == 0

    assert await iterator.advance()
    assert iterator.current == 1
    # the first advance drains the source and computes all keys
    assert source.iterations == 1
    assert source.closed == 1
    assert key_calls == 6

    assert [element async for element in iterator] == [2, 3]
    assert key_calls == 6

    # disposing an iterator before its first advance does not touch the source
    await ordered.get_iterator().dispose()
    assert source.iterations == 1


@pytest.mark.asyncio
async def test_no_partial_results() -> None:
    error = LookupError("source failed")
    source = TrackingIterable(1, 2, 3, error=error)
    iterator = IterableSequence(source).order_by(lambda x: x).get_iterator()

    # the failure surfaces from the first advance, before any element is produced
    with pytest.raises(LookupError) as exc_info:
        await iterator.advance()
    assert exc_info.value is error
    assert iterator.state is IteratorState.FAULTED
    assert not await iterator.advance()

    await iterator.dispose()
    assert source.closed == 1

    # failures of the key selector behave likewise
    def _failing_key(x: int) -> int:
        if x == 2:
            raise error
        return x

    iterator = IterableSequence([3, 2, 1]).order_by(_failing_key).get_iterator()
    with pytest.raises(LookupError):
        await iterator.advance()
    assert not await iterator.advance()
    await iterator.dispose()


@pytest.mark.asyncio
async def test_restart_independence() -> None:
    source = TrackingIterable(5, 3, 8, 1)
    ordered = IterableSequence(source).order_by_descending(lambda x: x)

    first, second = await asyncio.gather(ordered.ato_list(), ordered.ato_list())
    assert first == second == [8, 5, 3, 1]
    assert source.iterations == 2

    # iterators progress independently
    iterator_1 = ordered.get_iterator()
    iterator_2 = ordered.get_iterator()
    assert await iterator_1.advance() and await iterator_1.advance()
    assert await iterator_2.advance()
    assert (iterator_1.current, iterator_2.current) == (5, 8)

    # disposing one iterator does not affect the other
    await iterator_1.dispose()
    assert [element async for element in iterator_2] == [5, 3, 1]


@pytest.mark.asyncio
async def test_dispose_mid_iteration() -> None:
    ordered = IterableSequence([2, 3, 1]).order_by(lambda x: x)
    iterator = ordered.get_iterator()

    assert await iterator.advance()
    assert iterator.current == 1
    await iterator.dispose()
    await iterator.dispose()
    assert iterator.state is IteratorState.DISPOSED
    assert not await iterator.advance()
    with pytest.raises(RuntimeError):
        _ = iterator.current


@pytest.mark.asyncio
async def test_dispose_while_sorting() -> None:
    keyed: list[int] = []
    gate = asyncio.Event()

    async def _gated_key(x: int) -> int:
        keyed.append(x)
        await gate.wait()
        return x

    iterator = IterableSequence([3, 1, 2]).order_by(_gated_key).get_iterator()

    pending = asyncio.create_task(iterator.advance())
    await asyncio.sleep(0)
    assert keyed == [3]

    await iterator.dispose()
    gate.set()

    # the pending advance stops computing keys and produces no element
    assert not await pending
    assert iterator.state is IteratorState.DISPOSED
    assert keyed == [3]
    assert iterator._buffer is None  # type: ignore[attr-defined]
    assert iterator._order is None  # type: ignore[attr-defined]


def test_validation() -> None:
    numbers = IterableSequence([1, 2, 3])

    with pytest.raises(TypeError, match="^arg key_selector must be callable"):
        numbers.order_by(None)  # type: ignore[arg-type]
    with pytest.raises(TypeError, match="^arg comparer must be callable"):
        numbers.order_by_descending(lambda x: x, 42)  # type: ignore[arg-type]

    ordered = numbers.order_by(lambda x: x)
    with pytest.raises(TypeError, match="^arg key_selector must be callable"):
        ordered.then_by("x")  # type: ignore[arg-type]
    with pytest.raises(TypeError, match="^arg comparer must be callable"):
        ordered.then_by_descending(lambda x: x, None)  # type: ignore[arg-type]

    with pytest.raises(TypeError, match="^arg source must be an AsyncSequence"):
        OrderedSequence([1, 2, 3], SortKey(abs))  # type: ignore[arg-type]
    with pytest.raises(TypeError, match="^arg sort_key must be a SortKey"):
        OrderedSequence(numbers, abs)  # type: ignore[arg-type]
    with pytest.raises(TypeError, match="^arg parent must be a SortKey or None"):
        SortKey(abs, parent=abs)  # type: ignore[arg-type]


def test_sync() -> None:
    ordered = IterableSequence(PEOPLE).order_by_descending(_age).then_by(_name)

    assert [person.name for person in ordered] == [
        "bob",
        "carol",
        "alice",
        "dave",
        "erin",
    ]
    assert ordered.count() == len(PEOPLE)

    frame = ordered.to_frame()
    assert list(frame.columns) == ["name", "age"]
    assert frame["age"].tolist() == [35, 35, 30, 30, 25]


def test_sort_key() -> None:
    primary = SortKey(_age, descending=True)
    secondary = SortKey(_name, parent=primary)
    tertiary = SortKey(len, compare_natural, parent=secondary)

    assert primary.descending
    assert not secondary.descending
    assert primary.comparer is compare_natural
    assert [key.depth for key in (primary, secondary, tertiary)] == [1, 2, 3]
    assert list(tertiary.iter_chain()) == [primary, secondary, tertiary]
    assert list(primary.iter_chain()) == [primary]

    assert asyncio.run(secondary.aget_key(Person("zoe", 20))) == "zoe"


def test_sort_indices() -> None:
    sort_keys = [SortKey(_age), SortKey(_name, descending=True)]
    people = [Person("a", 2), Person("b", 1), Person("c", 2), Person("a", 2)]

    keys = asyncio.run(compute_keys(people, sort_keys))
    assert keys == [(2, "a"), (1, "b"), (2, "c"), (2, "a")]

    # ties at all levels keep their original order
    assert sort_indices(keys, sort_keys) == [1, 2, 0, 3]
    assert sort_indices([], sort_keys) == []


def test_expression() -> None:
    ordered = IterableSequence(iter(PEOPLE)).order_by_descending(_age).then_by(_name)

    _IterableSequence = Id(IterableSequence)
    _OrderedSequence = Id(OrderedSequence)
    _SortKey = Id(SortKey)

    assert freeze(ordered.to_expression()) == freeze(
        _OrderedSequence(
            source=_IterableSequence(),
            sort_key=_SortKey(
                key_selector=Id("_name"),
                parent=_SortKey(key_selector=Id("_age"), descending=True),
            ),
        )
    )
