"""
Shared helpers for kvcollection.

Error taxonomy, selector resolution, callable arity binding, strict
equality and comparator normalisation used by every collection operation.
"""

import functools
import inspect
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Callable, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)


class CollectionError(Exception):
    """Base class for every error raised by a collection."""
    pass


class EmptyCollectionError(CollectionError, LookupError):
    """Raised when an operation needs at least one item and there is none."""
    pass


class InvalidArgumentError(CollectionError, ValueError):
    """Raised when a structural precondition of an operation is violated."""
    pass


class InvalidReturnValueError(CollectionError, TypeError):
    """Raised when a user callable returns something its contract forbids."""
    pass


class DuplicateKeyError(CollectionError, KeyError):
    """Raised by strict materialization when a key is produced twice."""
    pass


class _Missing:
    """Marker for an absent argument or an unresolvable selector path."""

    def __repr__(self):
        return "MISSING"

    def __bool__(self):
        return False


MISSING = _Missing()

Selector = Union[None, Callable[..., Any], str, int]


# --------- callables ----------

def accepted_arguments(fn: Callable, limit: int, fallback: int = 1) -> int:
    """Number of positional arguments (capped at ``limit``) ``fn`` accepts.

    Builtins without an introspectable signature (``int``, ``str``...) get
    ``fallback``.
    """
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return min(fallback, limit)

    count = 0
    for parameter in signature.parameters.values():
        if parameter.kind == parameter.VAR_POSITIONAL:
            return limit
        if parameter.kind in (parameter.POSITIONAL_ONLY, parameter.POSITIONAL_OR_KEYWORD):
            if parameter.default is not parameter.empty and count >= 1:
                # optional extras like ``round(x, ndigits=None)`` stay unfilled
                break
            count += 1
    return min(count, limit)


def bind_callable(fn: Callable, limit: int, fallback: int = 1) -> Callable:
    """Wrap ``fn`` so it can always be called with ``limit`` arguments.

    ``lambda v: ...`` and ``lambda v, k: ...`` are both accepted where an
    operation passes ``(value, key)``.
    """
    if not callable(fn):
        raise InvalidArgumentError(f"Expected a callable, got {type(fn).__name__}")

    arity = accepted_arguments(fn, limit, fallback)
    if arity >= limit:
        return fn

    @functools.wraps(fn)
    def bound(*args):
        return fn(*args[:arity])

    return bound


# --------- selectors ----------

def _is_int_key(key: Any) -> bool:
    return isinstance(key, int) and not isinstance(key, bool)


def _lookup(item: Any, segment: Union[str, int]) -> Any:
    """Look one level into ``item``; MISSING when there is nothing there."""
    from .lazy import Collection

    if isinstance(item, Collection):
        return item.get(segment, MISSING)
    if isinstance(item, Mapping):
        return item.get(segment, MISSING)
    if isinstance(item, Sequence) and not isinstance(item, (str, bytes, bytearray)):
        index = segment
        if isinstance(index, str) and index.lstrip("-").isdigit():
            index = int(index)
        if _is_int_key(index):
            try:
                return item[index]
            except IndexError:
                return MISSING
    if isinstance(segment, str):
        return getattr(item, segment, MISSING)
    return MISSING


def extract_path(item: Any, path: Union[str, int]) -> Any:
    """Resolve a key, index, attribute or dotted path against ``item``."""
    found = _lookup(item, path)
    if found is not MISSING or not isinstance(path, str) or "." not in path:
        return found

    current = item
    for segment in path.split("."):
        current = _lookup(current, segment)
        if current is MISSING:
            return MISSING
    return current


def resolve_selector(selector: Selector, missing: Any = None) -> Callable[[Any, Any], Any]:
    """Turn a selector into a ``(value, key) -> result`` function.

    - ``None``: the value itself
    - callable: called with ``(value, key)`` or just ``(value)``
    - ``str``/``int``: key, index or attribute lookup on the value
      (dotted strings walk nested levels); unresolvable paths give ``missing``
    """
    if selector is None:
        return lambda value, key: value

    if callable(selector):
        return bind_callable(selector, 2)

    if isinstance(selector, str) or _is_int_key(selector):
        def select(value, key):
            found = extract_path(value, selector)
            return missing if found is MISSING else found
        return select

    raise InvalidArgumentError(
        f"Selector must be a callable, key name or index, got {type(selector).__name__}"
    )


# --------- equality ----------

def strict_equals(left: Any, right: Any) -> bool:
    """Type-exact equality: ``1``, ``1.0`` and ``True`` are all different."""
    if left is right:
        return True
    if type(left) is not type(right):
        return False
    if isinstance(left, (list, tuple)):
        return len(left) == len(right) and all(
            strict_equals(a, b) for a, b in zip(left, right)
        )
    if isinstance(left, dict):
        if list(left.keys()) != list(right.keys()):
            return False
        return all(strict_equals(left[k], right[k]) for k in left)
    return left == right


class StrictMembership:
    """Strict-equality membership test over a materialized set of values.

    Hashable values are bucketed by ``(type, value)`` so lookups stay cheap;
    unhashable ones fall back to a linear scan.
    """

    def __init__(self, values: Iterable[Any] = ()):
        self._buckets = {}
        self._unhashable: List[Any] = []
        for value in values:
            self.add(value)

    def add(self, value: Any) -> None:
        try:
            self._buckets.setdefault((type(value), value), []).append(value)
        except TypeError:
            self._unhashable.append(value)

    def __contains__(self, value: Any) -> bool:
        try:
            candidates = self._buckets.get((type(value), value), ())
        except TypeError:
            candidates = self._unhashable
        return any(strict_equals(value, candidate) for candidate in candidates)


# --------- ordering ----------

def comparator_key(comparator: Optional[Callable[[Any, Any], Any]]) -> Optional[Callable]:
    """Build a sort key from a three-state or boolean "is greater" comparator."""
    if comparator is None:
        return None

    def compare(left, right):
        result = comparator(left, right)
        if isinstance(result, bool):
            if result:
                return 1
            return -1 if comparator(right, left) else 0
        if result > 0:
            return 1
        if result < 0:
            return -1
        return 0

    return functools.cmp_to_key(compare)


def natural_sorted(values: Iterable[Any], key: Callable = None, reverse: bool = False) -> List[Any]:
    """``sorted`` that reports incomparable values as InvalidArgumentError."""
    try:
        return sorted(values, key=key, reverse=reverse)
    except TypeError as e:
        logger.debug(f"Natural ordering failed: {e}")
        raise InvalidArgumentError(f"Values cannot be compared: {e}") from e
