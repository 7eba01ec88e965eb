"""Read-only collection of collections, as returned by chunk() and split()."""

from typing import Iterable, Iterator, List

from .utils import InvalidArgumentError


class CollectionCollection:
    """
    An ordered, read-only sequence of Collection instances.

    Offers count and iteration access to its members, and nothing to
    change them.
    """

    def __init__(self, collections: Iterable = ()):
        from .lazy import Collection

        self._collections = tuple(collections)
        for index, member in enumerate(self._collections):
            if not isinstance(member, Collection):
                raise InvalidArgumentError(
                    f"Member {index} is {type(member).__name__}, expected Collection"
                )

    def get_collections(self) -> List:
        return list(self._collections)

    def get_collection_iterator(self) -> Iterator:
        return iter(self._collections)

    def get_collection_count(self) -> int:
        return len(self._collections)

    def to_list(self) -> list:
        """Members as plain value lists"""
        return [member.to_list() for member in self._collections]

    def __len__(self):
        return len(self._collections)

    def __iter__(self):
        return iter(self._collections)

    def __getitem__(self, index):
        return self._collections[index]

    def __repr__(self):
        return f"CollectionCollection({list(self._collections)!r})"
