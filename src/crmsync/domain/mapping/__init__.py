"""Mapping model: attribute translation, strategies, associations."""

from __future__ import annotations

from .associations import Association, AssociationResolver
from .attribute_map import (
    DEFAULT_CONVERTER,
    AttributeMap,
    DateTimeConverter,
    DefaultConverter,
    ValueConverter,
)
from .enums import AssociationKind, Cardinality, Side
from .mapping import Mapping
from .registry import MappingRegistry
from .strategies import Always, AlwaysToLocal, AlwaysToRemote, Associated, Passive, Strategy

__all__ = [
    "DEFAULT_CONVERTER",
    "Always",
    "AlwaysToLocal",
    "AlwaysToRemote",
    "Associated",
    "Association",
    "AssociationKind",
    "AssociationResolver",
    "AttributeMap",
    "Cardinality",
    "DateTimeConverter",
    "DefaultConverter",
    "Mapping",
    "MappingRegistry",
    "Passive",
    "Side",
    "Strategy",
    "ValueConverter",
]
