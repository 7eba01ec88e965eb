"""
kvcollection: lazy, key-preserving collections.

Usage:
    from kvcollection import Collection

    evens = Collection(range(10)).filter(lambda v: v % 2 == 0).to_list()
    totals = Collection(orders).group_by("customer").map(lambda g: g.sum("amount"))
"""

from .config import configure, configure_logging, get_settings, reset_settings, settings_from_env
from .grouped import CollectionCollection
from .lazy import Collection
from .models import CollectionItem, CollectionSettings, CollectionSnapshot
from .utils import (
    CollectionError,
    DuplicateKeyError,
    EmptyCollectionError,
    InvalidArgumentError,
    InvalidReturnValueError,
    resolve_selector,
)

__version__ = "0.1.0"
__all__ = [
    # Containers
    "Collection",
    "CollectionCollection",
    # Errors
    "CollectionError",
    "EmptyCollectionError",
    "InvalidArgumentError",
    "InvalidReturnValueError",
    "DuplicateKeyError",
    # Models and settings
    "CollectionItem",
    "CollectionSnapshot",
    "CollectionSettings",
    "configure",
    "configure_logging",
    "get_settings",
    "reset_settings",
    "settings_from_env",
    "resolve_selector",
]
