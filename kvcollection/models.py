"""
Pydantic models for kvcollection.

Structured representation of a collection for interchange with generic
data formats, and the process-wide settings model.
"""

import logging
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator, model_validator


class CollectionItem(BaseModel):
    """One key/value pair of a collection"""
    model_config = ConfigDict(frozen=True)

    key: Union[StrictInt, StrictStr] = Field(
        ...,
        description="Item key (integer or string)"
    )
    value: Any = Field(
        None,
        description="Item value; nested collections are stored as plain lists/dicts"
    )


class CollectionSnapshot(BaseModel):
    """Ordered, materialized view of a collection"""
    items: List[CollectionItem] = Field(
        default_factory=list,
        description="Items in iteration order"
    )
    count: Optional[int] = Field(
        None,
        ge=0,
        description="Number of items; filled in from items when omitted"
    )

    @model_validator(mode="after")
    def validate_items(self):
        """Keys must be unique and count must agree with items"""
        seen = set()
        for item in self.items:
            if item.key in seen:
                raise ValueError(f"Duplicate key in snapshot: {item.key!r}")
            seen.add(item.key)

        if self.count is None:
            self.count = len(self.items)
        elif self.count != len(self.items):
            raise ValueError(
                f"Snapshot count {self.count} does not match {len(self.items)} items"
            )
        return self


class CollectionSettings(BaseModel):
    """Process-wide defaults used by collection operations"""
    model_config = ConfigDict(extra="forbid")

    strict_keys: bool = Field(
        False,
        description="Default for to_array(strict=None): fail on duplicate keys"
    )
    random_seed: Optional[int] = Field(
        None,
        description="Seed for random() and shuffle(); None draws from the OS"
    )
    log_level: str = Field(
        "WARNING",
        description="Level applied to the kvcollection logger by configure_logging()"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level is a known logging level name"""
        level = str(v).strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level
