"""
Lazy key/value collection.

A Collection is an ordered stream of ``(key, value)`` pairs. Lazy operators
only queue a pipeline step; the steps are chained as generators when the
collection is iterated, so taking N results pulls O(N) items upstream.
Non-lazy operators realize the pipeline at call time.
"""

import logging
import math
import random as _random
from collections.abc import Iterable, Iterator, Mapping
from itertools import chain, islice
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

from .config import get_settings
from .grouped import CollectionCollection
from .models import CollectionItem, CollectionSnapshot
from .utils import (
    MISSING,
    DuplicateKeyError,
    EmptyCollectionError,
    InvalidArgumentError,
    InvalidReturnValueError,
    Selector,
    StrictMembership,
    _is_int_key,
    bind_callable,
    comparator_key,
    natural_sorted,
    resolve_selector,
    strict_equals,
)

logger = logging.getLogger(__name__)

Pair = Tuple[Any, Any]


# --------- pair sources ----------

class _MappingPairs:
    """Re-iterable view over a mapping's items."""

    def __init__(self, mapping):
        self.mapping = mapping

    def __iter__(self):
        return iter(self.mapping.items())


class _IndexedPairs:
    """Re-iterable enumeration of a sequence-like source."""

    def __init__(self, values):
        self._values = values

    def __iter__(self):
        return enumerate(self._values)


class _ReplaySource:
    """Pulls pairs from a one-shot iterator on demand and remembers them."""

    def __init__(self, iterator):
        self._iterator = iterator
        self._buffer: List[Pair] = []
        self._exhausted = False
        self._error: Optional[BaseException] = None

    def __iter__(self):
        index = 0
        while True:
            if index < len(self._buffer):
                yield self._buffer[index]
                index += 1
                continue
            if self._exhausted:
                if self._error is not None:
                    raise self._error
                return
            try:
                pair = next(self._iterator)
            except StopIteration:
                self._exhausted = True
                return
            except Exception as e:
                # later passes re-raise the stored error
                self._exhausted = True
                self._error = e
                raise
            self._buffer.append(pair)


def _adapt(source):
    """Turn a construction source into a re-iterable stream of pairs."""
    if source is None:
        return ()
    if isinstance(source, (str, bytes, bytearray)):
        raise InvalidArgumentError(
            f"Cannot build a collection from {type(source).__name__}; wrap it in a list"
        )
    if isinstance(source, Mapping):
        return _MappingPairs(source)
    if isinstance(source, Iterator):
        return _ReplaySource(enumerate(source))
    if isinstance(source, Iterable):
        return _IndexedPairs(source)
    raise InvalidArgumentError(f"Cannot build a collection from {type(source).__name__}")


# --------- pipeline steps ----------

def _map_step(pairs, fn):
    for key, value in pairs:
        yield key, fn(value, key)


def _filter_step(pairs, predicate):
    for key, value in pairs:
        if predicate(value, key):
            yield key, value


def _reject_step(pairs, predicate):
    for key, value in pairs:
        if not predicate(value, key):
            yield key, value


def _extract_step(pairs, select):
    for key, value in pairs:
        found = select(value, key)
        if found is not MISSING:
            yield key, found


def _index_by_step(pairs, select):
    for key, value in pairs:
        yield select(value, key), value


def _flip_step(pairs, _):
    for key, value in pairs:
        yield value, key


def _keys_step(pairs, _):
    for index, (key, _value) in enumerate(pairs):
        yield index, key


def _values_step(pairs, _):
    for index, (_key, value) in enumerate(pairs):
        yield index, value


def _is_nested(value) -> bool:
    if isinstance(value, (str, bytes, bytearray)):
        return False
    return isinstance(value, (Collection, Mapping, list, tuple, set, frozenset))


def _flatten_value(value, depth):
    if depth == 0 or not _is_nested(value):
        yield value
        return
    if isinstance(value, Collection):
        inner = (item for _key, item in value)
    elif isinstance(value, Mapping):
        inner = value.values()
    else:
        inner = value
    for item in inner:
        yield from _flatten_value(item, depth - 1)


def _flatten_step(pairs, depth):
    index = 0
    for _key, value in pairs:
        for item in _flatten_value(value, depth):
            yield index, item
            index += 1


def _take_step(pairs, count):
    return islice(pairs, count)


def _skip_step(pairs, count):
    return islice(pairs, count, None)


def _slice_step(pairs, bounds):
    offset, length = bounds
    return islice(pairs, offset, None if length is None else offset + length)


def _nth_step(pairs, bounds):
    step, offset = bounds
    return islice(pairs, offset, None, step)


def _concat_step(pairs, others):
    streams = [pairs] + [iter(other) for other in others]
    for index, (_key, value) in enumerate(chain.from_iterable(streams)):
        yield index, value


def _zip_step(pairs, others):
    iterators = [iter(other) for other in others]
    for index, (_key, value) in enumerate(pairs):
        row = [value]
        for iterator in iterators:
            try:
                row.append(next(iterator)[1])
            except StopIteration:
                return
        yield index, Collection(row)


def _diff_step(pairs, others):
    excluded = StrictMembership(value for other in others for _key, value in other)
    for key, value in pairs:
        if value not in excluded:
            yield key, value


def _intersect_step(pairs, others):
    required = [StrictMembership(value for _key, value in other) for other in others]
    for key, value in pairs:
        if all(value in membership for membership in required):
            yield key, value


def _distinct_step(pairs, _):
    seen = StrictMembership()
    for key, value in pairs:
        if value not in seen:
            seen.add(value)
            yield key, value


def _merge_step(pairs, other):
    overrides = other._unique()
    seen = set()
    next_index = 0
    for key, value in pairs:
        if _is_int_key(key):
            yield next_index, value
            next_index += 1
        else:
            seen.add(key)
            yield key, overrides.get(key, value)
    for key, value in overrides.items():
        if _is_int_key(key):
            yield next_index, value
            next_index += 1
        elif key not in seen:
            yield key, value


_PIPELINE_STEPS = {
    "map": _map_step,
    "filter": _filter_step,
    "reject": _reject_step,
    "extract": _extract_step,
    "index_by": _index_by_step,
    "flip": _flip_step,
    "keys": _keys_step,
    "values": _values_step,
    "flatten": _flatten_step,
    "take": _take_step,
    "skip": _skip_step,
    "slice": _slice_step,
    "nth": _nth_step,
    "concat": _concat_step,
    "zip": _zip_step,
    "diff": _diff_step,
    "intersect": _intersect_step,
    "distinct": _distinct_step,
    "merge": _merge_step,
}


def _next_index(keys) -> int:
    """Auto-increment key: highest non-negative int key + 1, else 0."""
    highest = max((key for key in keys if _is_int_key(key)), default=-1)
    return highest + 1 if highest >= 0 else 0


def _reindexed(pairs, preserve_keys: bool) -> Tuple[Pair, ...]:
    if preserve_keys:
        return tuple(pairs)
    return tuple(enumerate(value for _key, value in pairs))


def _as_collection(source) -> "Collection":
    # a fork, so later mutation of the caller's collection is not seen here
    return Collection(source)


def _check_count(name: str, value, minimum: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < minimum:
        raise InvalidArgumentError(f"{name} must be an integer >= {minimum}, got {value!r}")
    return value


class Collection:
    """
    A chainable, lazy collection of key/value pairs.

    Built from a mapping (its items), another Collection, or any finite
    iterable (enumerated from key 0). Transformations return new
    collections; only push/put/pop/shift/unshift/prepend/pull change the
    receiver.

    Iterating yields ``(key, value)`` pairs. Because ``keys()`` exists,
    ``dict(collection)`` takes the mapping path; use
    ``dict(collection.items())`` or ``to_array()`` instead.
    """

    def __init__(self, source=None):
        self._data: Optional[Dict] = None   # owned dict once realized for mutation
        self._shared = False                # derived collections read from _data
        if isinstance(source, Collection):
            self._source, self._ops = source._fork()
        else:
            self._source = _adapt(source)
            self._ops = ()

    @classmethod
    def from_pairs(cls, pairs: Iterable[Pair]) -> "Collection":
        """Build a collection from explicit ``(key, value)`` pairs."""
        if isinstance(pairs, Iterator):
            return cls._wrap(_ReplaySource(iter(pairs)))
        return cls._wrap(tuple(pairs))

    @classmethod
    def from_model(cls, snapshot) -> "Collection":
        """Rebuild a collection from a CollectionSnapshot or its dict form."""
        if not isinstance(snapshot, CollectionSnapshot):
            snapshot = CollectionSnapshot.model_validate(snapshot)
        return cls._wrap(tuple((item.key, item.value) for item in snapshot.items))

    # --------- chainable operators (lazy) ----------
    def map(self, fn: Callable) -> "Collection":
        return self._with_op("map", bind_callable(fn, 2))

    def filter(self, predicate: Optional[Callable] = None) -> "Collection":
        if predicate is None:
            return self._with_op("filter", lambda value, key: bool(value))
        return self._with_op("filter", bind_callable(predicate, 2))

    def reject(self, predicate: Callable) -> "Collection":
        return self._with_op("reject", bind_callable(predicate, 2))

    def extract(self, selector: Selector) -> "Collection":
        """Resolved selector values, keys kept; items without the path are skipped"""
        return self._with_op("extract", resolve_selector(selector, missing=MISSING))

    def index_by(self, selector: Selector) -> "Collection":
        """Re-key every item by the selector; later items win on collision"""
        return self._with_op("index_by", resolve_selector(selector))

    def flip(self) -> "Collection":
        return self._with_op("flip")

    def keys(self) -> "Collection":
        return self._with_op("keys")

    def values(self) -> "Collection":
        return self._with_op("values")

    def flatten(self, depth: int = -1) -> "Collection":
        """Flatten nested iterables; -1 is fully recursive, 0 changes nothing"""
        if not isinstance(depth, int):
            raise InvalidArgumentError(f"flatten depth must be an integer, got {depth!r}")
        if depth == 0:
            return self._wrap(self._fork_source(), self._ops)
        return self._with_op("flatten", depth)

    def take(self, count: int) -> "Collection":
        return self._with_op("take", _check_count("take count", count, 0))

    def skip(self, count: int) -> "Collection":
        return self._with_op("skip", _check_count("skip count", count, 0))

    def nth(self, step: int, offset: int = 0) -> "Collection":
        """Every step-th item starting at position offset"""
        _check_count("nth step", step, 1)
        _check_count("nth offset", offset, 0)
        return self._with_op("nth", (step, offset))

    def take_nth(self, step: int, offset: int = 0) -> "Collection":
        return self.nth(step, offset)

    def slice(self, offset: int, length: Optional[int] = None) -> "Collection":
        """Array-slice semantics; keys are preserved.

        Non-negative bounds stay lazy. A negative offset counts from the
        end and a negative length stops that many items before the end;
        both need the full sequence and realize it.
        """
        if offset >= 0 and (length is None or length >= 0):
            return self._with_op("slice", (offset, length))

        pairs = list(self)
        start = slice(offset, None).indices(len(pairs))[0]
        if length is None:
            stop = len(pairs)
        elif length < 0:
            stop = len(pairs) + length
        else:
            stop = start + length
        return self._wrap(tuple(pairs[start:stop]))

    def concat(self, *others) -> "Collection":
        """Append other sources; every key is renumbered from 0"""
        return self._with_op("concat", tuple(_as_collection(o) for o in others))

    def zip(self, *others) -> "Collection":
        """Positional tuples (as collections), stopping at the shortest input"""
        return self._with_op("zip", tuple(_as_collection(o) for o in others))

    def diff(self, *others) -> "Collection":
        return self._with_op("diff", tuple(_as_collection(o) for o in others))

    def intersect(self, *others) -> "Collection":
        return self._with_op("intersect", tuple(_as_collection(o) for o in others))

    def distinct(self) -> "Collection":
        return self._with_op("distinct")

    def merge(self, other) -> "Collection":
        """Associative merge: string keys overwritten, int keys appended and renumbered"""
        return self._with_op("merge", _as_collection(other))

    def cache(self) -> "Collection":
        """Memoize realized pairs so later passes skip the upstream pipeline"""
        return self._wrap(_ReplaySource(iter(Collection(self))))

    # --------- non-lazy transforms ----------
    def sort(self, comparator: Optional[Callable] = None, preserve_keys: bool = False) -> "Collection":
        """Stable sort by value.

        ``comparator(a, b)`` returns >0/0/<0, or a boolean meaning "a is
        greater than b". Without one, values are compared naturally.
        """
        pairs = list(self)
        key = comparator_key(comparator)
        if key is None:
            ordered = natural_sorted(pairs, key=lambda pair: pair[1])
        else:
            ordered = sorted(pairs, key=lambda pair: key(pair[1]))
        logger.debug(f"Sorted {len(pairs)} items")
        return self._wrap(_reindexed(ordered, preserve_keys))

    def sort_by(self, selector: Selector = None, descending: bool = False,
                preserve_keys: bool = False) -> "Collection":
        select = resolve_selector(selector)
        decorated = [(select(value, key), (key, value)) for key, value in self]
        ordered = natural_sorted(decorated, key=lambda entry: entry[0], reverse=descending)
        return self._wrap(_reindexed((pair for _rank, pair in ordered), preserve_keys))

    def reverse(self) -> "Collection":
        return self._wrap(tuple(reversed(list(self))))

    def shuffle(self) -> "Collection":
        pairs = list(self)
        self._rng().shuffle(pairs)
        return self._wrap(tuple(pairs))

    def group_by(self, selector: Selector, preserve_keys: bool = False) -> "Collection":
        """Collections of items keyed by the selector's value, in first-seen order"""
        select = resolve_selector(selector)
        groups: Dict[Any, List[Pair]] = {}
        for key, value in self:
            group = select(value, key)
            try:
                groups.setdefault(group, []).append((key, value))
            except TypeError as e:
                raise InvalidArgumentError(f"group_by produced an unhashable key: {group!r}") from e
        return self._wrap(tuple(
            (group, self._wrap(_reindexed(members, preserve_keys)))
            for group, members in groups.items()
        ))

    def transform(self, fn: Callable[["Collection"], "Collection"]) -> "Collection":
        """Hand the whole collection to ``fn``, which must return a Collection"""
        result = fn(self)
        if not isinstance(result, Collection):
            raise InvalidReturnValueError(
                f"transform callable must return a Collection, got {type(result).__name__}"
            )
        return result

    def transpose(self) -> "Collection":
        """Swap rows and columns of a collection of equal-length collections"""
        rows = []
        for key, row in self:
            if not isinstance(row, Collection):
                raise InvalidArgumentError(
                    f"transpose requires every item to be a Collection, "
                    f"item {key!r} is {type(row).__name__}"
                )
            rows.append((key, list(row._unique().items())))
        if not rows:
            return self._wrap(())

        width = len(rows[0][1])
        for key, cells in rows:
            if len(cells) != width:
                raise InvalidArgumentError(
                    f"transpose requires equal-length collections, "
                    f"item {key!r} has {len(cells)} items, expected {width}"
                )

        columns = []
        for index, (column_key, _value) in enumerate(rows[0][1]):
            column = tuple((row_key, cells[index][1]) for row_key, cells in rows)
            columns.append((column_key, self._wrap(column)))
        return self._wrap(tuple(columns))

    def chunk(self, size: int, preserve_keys: bool = False) -> CollectionCollection:
        """Consecutive parts of ``size`` items; the last one may be shorter"""
        _check_count("chunk size", size, 1)
        chunks = []
        bucket: List[Pair] = []
        for pair in self:
            bucket.append(pair)
            if len(bucket) == size:
                chunks.append(self._wrap(_reindexed(bucket, preserve_keys)))
                bucket = []
        if bucket:
            chunks.append(self._wrap(_reindexed(bucket, preserve_keys)))
        return CollectionCollection(chunks)

    def split(self, groups: int, preserve_keys: bool = False) -> CollectionCollection:
        """Exactly ``groups`` parts of ceil(total / groups) items; trailing parts may be empty"""
        _check_count("split groups", groups, 1)
        pairs = list(self)
        size = math.ceil(len(pairs) / groups)
        parts = [
            self._wrap(_reindexed(pairs[index * size:(index + 1) * size], preserve_keys))
            for index in range(groups)
        ]
        return CollectionCollection(parts)

    # --------- accessors ----------
    def get(self, key, default=None):
        """Value stored under ``key`` (last write wins), or ``default``"""
        if not self._ops and isinstance(self._source, _MappingPairs):
            try:
                return self._source.mapping.get(key, default)
            except TypeError:
                return default
        found = default
        for item_key, value in self:
            if item_key == key:
                found = value
        return found

    def has(self, key) -> bool:
        if not self._ops and isinstance(self._source, _MappingPairs):
            try:
                return key in self._source.mapping
            except TypeError:
                return False
        return any(item_key == key for item_key, _value in self)

    def contains(self, value) -> bool:
        """Strict (type-exact) membership test over values"""
        return any(strict_equals(item, value) for _key, item in self)

    def first(self, predicate: Optional[Callable] = None, default=MISSING):
        """First value (matching ``predicate``).

        When nothing matches, returns ``default`` if given, otherwise
        raises EmptyCollectionError.
        """
        test = bind_callable(predicate, 2) if predicate is not None else None
        for key, value in self:
            if test is None or test(value, key):
                return value
        if default is not MISSING:
            return default
        raise EmptyCollectionError("No item found for first()")

    def last(self, predicate: Optional[Callable] = None, default=MISSING):
        """Last value (matching ``predicate``); same empty policy as first()"""
        test = bind_callable(predicate, 2) if predicate is not None else None
        found = MISSING
        for key, value in self:
            if test is None or test(value, key):
                found = value
        if found is not MISSING:
            return found
        if default is not MISSING:
            return default
        raise EmptyCollectionError("No item found for last()")

    def random(self):
        values = list(self._unique().values())
        if not values:
            raise EmptyCollectionError("Cannot pick a random item from an empty collection")
        return self._rng().choice(values)

    def parts(self, selector: Selector = None) -> list:
        """Plain list of resolved selector values"""
        select = resolve_selector(selector)
        return [select(value, key) for key, value in self]

    def each(self, fn: Callable) -> None:
        """Call ``fn(value, key)`` for every item; returning False stops the walk"""
        call = bind_callable(fn, 2)
        for key, value in self:
            if call(value, key) is False:
                break

    def count(self) -> int:
        if not self._ops and isinstance(self._source, _MappingPairs):
            return len(self._source.mapping)
        return len(self._unique())

    def is_empty(self) -> bool:
        for _ in self:
            return False
        return True

    def items(self) -> Iterator[Pair]:
        return iter(self)

    # --------- reducing operations (force evaluation) ----------
    def reduce(self, fn: Callable, initial=MISSING):
        """Left fold calling ``fn(carry, value, key)`` in key order"""
        step = bind_callable(fn, 3, fallback=2)
        carry = initial
        for key, value in self:
            if carry is MISSING:
                carry = value
                continue
            carry = step(carry, value, key)
        if carry is MISSING:
            raise EmptyCollectionError("reduce() of an empty collection with no initial value")
        return carry

    def sum(self, selector: Selector = None):
        select = resolve_selector(selector)
        total = 0
        for key, value in self:
            total += select(value, key)
        return total

    def avg(self, selector: Selector = None) -> float:
        values = self._resolved(selector, "avg")
        return sum(values) / len(values)

    def min(self, selector: Selector = None):
        return self._extreme(selector, "min", descending=False)

    def max(self, selector: Selector = None):
        return self._extreme(selector, "max", descending=True)

    def median(self, selector: Selector = None):
        """Middle resolved value; mean of the two middle values for even sizes"""
        ordered = natural_sorted(self._resolved(selector, "median"))
        middle = len(ordered) // 2
        if len(ordered) % 2:
            return ordered[middle]
        return (ordered[middle - 1] + ordered[middle]) / 2

    def count_by(self, selector: Selector = None) -> "Collection":
        """Counts keyed by resolved value, in first-occurrence order"""
        select = resolve_selector(selector)
        counts: Dict[Any, int] = {}
        for key, value in self:
            group = select(value, key)
            try:
                counts[group] = counts.get(group, 0) + 1
            except TypeError as e:
                raise InvalidArgumentError(f"count_by produced an unhashable key: {group!r}") from e
        return self._wrap(tuple(counts.items()))

    def frequencies(self) -> "Collection":
        return self.count_by(None)

    # --------- mutating operations ----------
    def push(self, *values) -> "Collection":
        data = self._owned()
        index = _next_index(data)
        for value in values:
            data[index] = value
            index += 1
        return self

    def put(self, key, value) -> "Collection":
        self._owned()[key] = value
        return self

    def pop(self):
        """Remove and return the last value"""
        data = self._owned()
        if not data:
            raise EmptyCollectionError("pop() from an empty collection")
        return data.pop(next(reversed(data)))

    def shift(self):
        """Remove and return the first value"""
        data = self._owned()
        if not data:
            raise EmptyCollectionError("shift() from an empty collection")
        return data.pop(next(iter(data)))

    def prepend(self, value, key=None) -> "Collection":
        """Insert at the front; without a key, int keys are renumbered from 0"""
        data = self._owned()
        if key is None:
            reordered = {0: value}
            index = 1
            for item_key, item in data.items():
                if _is_int_key(item_key):
                    reordered[index] = item
                    index += 1
                else:
                    reordered[item_key] = item
        else:
            reordered = {key: value}
            for item_key, item in data.items():
                reordered.setdefault(item_key, item)
        data.clear()
        data.update(reordered)
        return self

    def unshift(self, *values) -> "Collection":
        for value in reversed(values):
            self.prepend(value)
        return self

    def pull(self, predicate: Callable) -> "Collection":
        """Remove every matching item and return them as a new collection"""
        test = bind_callable(predicate, 2)
        data = self._owned()
        removed = [(key, value) for key, value in data.items() if test(value, key)]
        for key, _value in removed:
            del data[key]
        logger.debug(f"Pulled {len(removed)} items")
        return self._wrap(tuple(removed))

    # --------- materialization ----------
    def to_array(self, strict: Optional[bool] = None) -> dict:
        """Materialize into a dict, nested collections included.

        Duplicate keys: last write wins, or DuplicateKeyError when strict
        (``None`` uses the configured ``strict_keys``).
        """
        if strict is None:
            strict = get_settings().strict_keys
        result = {}
        for key, value in self:
            if strict and key in result:
                raise DuplicateKeyError(key)
            result[key] = value.to_array(strict) if isinstance(value, Collection) else value
        return result

    def all(self) -> dict:
        return self.to_array()

    def to_list(self) -> list:
        """Values in order, nested collections as lists"""
        return [
            value.to_list() if isinstance(value, Collection) else value
            for value in self._unique().values()
        ]

    def to_structure(self):
        """Plain data: a list when keys are exactly 0..n-1, else a dict"""
        data = {
            key: value.to_structure() if isinstance(value, Collection) else value
            for key, value in self._unique().items()
        }
        if all(_is_int_key(key) and key == index for index, key in enumerate(data)):
            return list(data.values())
        return data

    def to_model(self) -> CollectionSnapshot:
        try:
            items = [
                CollectionItem(
                    key=key,
                    value=value.to_structure() if isinstance(value, Collection) else value,
                )
                for key, value in self._unique().items()
            ]
            return CollectionSnapshot(items=items)
        except ValidationError as e:
            raise InvalidArgumentError(f"Collection cannot be represented as a snapshot: {e}") from e

    def to_json(self, indent: Optional[int] = None) -> str:
        return self.to_model().model_dump_json(indent=indent)

    # --------- iterator protocol ----------
    def __iter__(self):
        pairs = iter(self._source)
        for op, arg in self._ops:
            pairs = _PIPELINE_STEPS[op](pairs, arg)
        yield from pairs

    def __len__(self):
        return self.count()

    def __bool__(self):
        return not self.is_empty()

    def __getitem__(self, key):
        value = self.get(key, MISSING)
        if value is MISSING:
            raise KeyError(key)
        return value

    def __repr__(self):
        return f"Collection({self.to_array(strict=False)!r})"

    # --------- helpers ----------
    @classmethod
    def _wrap(cls, source, ops=()) -> "Collection":
        collection = cls.__new__(cls)
        collection._data = None
        collection._shared = False
        collection._source = source
        collection._ops = tuple(ops)
        return collection

    def _fork_source(self):
        if self._data is not None:
            self._shared = True
        return self._source

    def _fork(self):
        return self._fork_source(), self._ops

    def _with_op(self, name: str, arg=None) -> "Collection":
        return self._wrap(self._fork_source(), self._ops + ((name, arg),))

    def _unique(self) -> dict:
        """Raw last-write-wins dict of the stream (nested values untouched)"""
        return {key: value for key, value in self}

    def _owned(self) -> dict:
        """Realize into a dict this collection alone may change"""
        if self._data is None or self._shared or self._ops:
            self._data = self._unique()
            self._source = _MappingPairs(self._data)
            self._ops = ()
            self._shared = False
            logger.debug(f"Realized {len(self._data)} items for mutation")
        return self._data

    def _resolved(self, selector: Selector, operation: str) -> list:
        select = resolve_selector(selector)
        values = [select(value, key) for key, value in self]
        if not values:
            raise EmptyCollectionError(f"Cannot compute {operation} of an empty collection")
        return values

    def _extreme(self, selector: Selector, operation: str, descending: bool):
        """First item whose resolved value is the smallest (or largest)"""
        select = resolve_selector(selector)
        decorated = [(select(value, key), value) for key, value in self]
        if not decorated:
            raise EmptyCollectionError(f"Cannot compute {operation} of an empty collection")
        return natural_sorted(decorated, key=lambda entry: entry[0], reverse=descending)[0][1]

    @staticmethod
    def _rng() -> _random.Random:
        return _random.Random(get_settings().random_seed)
