"""
Naming rules for generated code.

This module is the single place where raw database identifiers become
class, collection and property names. Both emission strategies read the
names it produces; neither re-derives them.
"""

import re
from enum import Enum
from typing import Dict, Iterable, Optional, Set

import inflect

from ...logging_config import get_logger

logger = get_logger(__name__)


class NamingCase(Enum):
    """Different naming case styles."""

    SNAKE_CASE = "snake"  # user_name
    CAMEL_CASE = "camel"  # userName
    PASCAL_CASE = "pascal"  # UserName


def to_snake_case(name: str) -> str:
    """Convert to snake_case."""
    name = re.sub(r"[-\s]+", "_", str(name))
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    return re.sub(r"_+", "_", name).lower()


def to_camel_case(name: str) -> str:
    """Convert to camelCase."""
    parts = to_snake_case(name).split("_")
    if not parts:
        return str(name)
    return parts[0] + "".join(p.capitalize() for p in parts[1:])


def to_pascal_case(name: str) -> str:
    """Convert to PascalCase."""
    return "".join(p.capitalize() for p in to_snake_case(name).split("_") if p)


def convert_case(name: str, target_case: NamingCase) -> str:
    if target_case == NamingCase.SNAKE_CASE:
        return to_snake_case(name)
    elif target_case == NamingCase.CAMEL_CASE:
        return to_camel_case(name)
    elif target_case == NamingCase.PASCAL_CASE:
        return to_pascal_case(name)
    return name


def strip_spaces(name: str) -> str:
    return name.replace(" ", "")


def unique_name(name: str, used: Set[str]) -> str:
    """Return name, or name_1, name_2... whichever is not yet in used."""
    candidate = name
    counter = 1
    while candidate in used:
        candidate = f"{name}_{counter}"
        counter += 1
    return candidate


class Pluralizer:
    """Interface for singular/plural conversion of English nouns."""

    def is_plural(self, word: str) -> bool:
        raise NotImplementedError

    def singularize(self, word: str) -> str:
        raise NotImplementedError

    def pluralize(self, word: str) -> str:
        raise NotImplementedError

    def is_singular(self, word: str) -> bool:
        return not self.is_plural(word)


class InflectPluralizer(Pluralizer):
    """Pluralizer backed by the inflect library."""

    def __init__(self, irregular: Optional[Dict[str, str]] = None):
        """
        Args:
            irregular: Extra singular to plural pairs, e.g. {"person": "people"}
        """
        self._engine = inflect.engine()
        self._irregular: Dict[str, str] = {}
        self._irregular_plurals: Dict[str, str] = {}
        for singular, plural in (irregular or {}).items():
            self.add_irregular(singular, plural)

    def add_irregular(self, singular: str, plural: str):
        self._engine.defnoun(singular, plural)
        self._irregular[singular.lower()] = plural
        self._irregular_plurals[plural.lower()] = singular

    def is_plural(self, word: str) -> bool:
        if not word:
            return False
        if word.lower() in self._irregular_plurals:
            return True
        if word.lower() in self._irregular:
            return False
        return self._engine.singular_noun(word) is not False

    def singularize(self, word: str) -> str:
        if not word:
            return word
        if word.lower() in self._irregular_plurals:
            return _match_case(self._irregular_plurals[word.lower()], word)
        singular = self._engine.singular_noun(word)
        return singular if singular else word

    def pluralize(self, word: str) -> str:
        if not word:
            return word
        if word.lower() in self._irregular:
            return _match_case(self._irregular[word.lower()], word)
        return self._engine.plural_noun(word)


def _match_case(value: str, like: str) -> str:
    if like[:1].isupper():
        return value[:1].upper() + value[1:]
    return value


class NamingResolver:
    """
    Resolves generated names from raw identifiers.

    Explicit overrides always win. Otherwise class names are singular,
    collection names plural, and property names are made safe for the
    target language.
    """

    def __init__(
        self,
        pluralizer: Optional[Pluralizer] = None,
        reserved_words: Iterable[str] = (),
        class_name_overrides: Optional[Dict[str, str]] = None,
        collection_name_overrides: Optional[Dict[str, str]] = None,
        property_name_overrides: Optional[Dict[str, Dict[str, str]]] = None,
        primary_key_property_name: Optional[str] = None,
    ):
        """
        Initialize the resolver.

        Args:
            pluralizer: Singular/plural conversion (defaults to InflectPluralizer)
            reserved_words: Target language keywords, compared case-insensitively
            class_name_overrides: Table name (or "schema.table") to class name
            collection_name_overrides: Table name, "schema.table" or resolved
                class name to collection name
            property_name_overrides: Table name (or "schema.table") to a map of
                column name to property name
            primary_key_property_name: Property name for single-column primary
                keys, e.g. "Id"; None keeps the column-derived name
        """
        self.pluralizer = pluralizer or InflectPluralizer()
        self.reserved_words = {w.lower() for w in reserved_words}
        self.class_name_overrides = class_name_overrides or {}
        self.collection_name_overrides = collection_name_overrides or {}
        self.property_name_overrides = property_name_overrides or {}
        self.primary_key_property_name = primary_key_property_name

    def table_to_class_name(self, schema: str, table: str) -> str:
        """Singular class name for a table, e.g. Employees -> Employee."""
        override = self._lookup(self.class_name_overrides, schema, table)
        if override:
            return override

        name = strip_spaces(table)
        if self.pluralizer.is_plural(name):
            name = self.pluralizer.singularize(name)
        return name

    def table_to_collection_name(self, schema: str, table: str) -> str:
        """Plural collection name for a table, e.g. Order -> Orders."""
        override = self._lookup(self.collection_name_overrides, schema, table)
        if not override:
            override = self.collection_name_overrides.get(
                self.table_to_class_name(schema, table)
            )
        if override:
            return override

        name = strip_spaces(table)
        if self.pluralizer.is_singular(name):
            name = self.pluralizer.pluralize(name)
        return name

    def column_to_property_name(
        self, schema: str, table: str, column: str, is_single_primary_key: bool = False
    ) -> str:
        """
        Property name for a column.

        Spaces are removed. A name that is a reserved word or equals the
        owning class name gets a leading underscore. A trailing "ID" becomes
        "Id".
        """
        table_overrides = self._lookup(self.property_name_overrides, schema, table)
        if table_overrides and column in table_overrides:
            return table_overrides[column]

        if is_single_primary_key and self.primary_key_property_name:
            return self.primary_key_property_name

        name = strip_spaces(column)
        lowered = name.lower()
        if (
            lowered in self.reserved_words
            or lowered == table.lower()
            or lowered == self.table_to_class_name(schema, table).lower()
        ):
            name = f"_{name}"
        if name.endswith("ID"):
            name = name[:-1] + "d"
        return name

    @staticmethod
    def _lookup(mapping: Dict, schema: str, table: str):
        qualified = f"{schema}.{table}"
        if qualified in mapping:
            return mapping[qualified]
        return mapping.get(table)
