"""Enumerations shared by the mapping model."""

from __future__ import annotations

from enum import StrEnum


class Side(StrEnum):
    """Which of the two stores of a mapping a record lives in."""

    LOCAL = "local"
    REMOTE = "remote"

    @property
    def other(self) -> Side:
        return Side.REMOTE if self is Side.LOCAL else Side.LOCAL


class AssociationKind(StrEnum):
    BELONGS_TO = "belongs_to"
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"


class Cardinality(StrEnum):
    ONE = "one"
    MANY = "many"
