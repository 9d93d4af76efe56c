from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from genericdao.common.enums import FieldOperator, FilterOperator
from genericdao.common.exceptions import NullArgument

COMPOSITE_OPERATORS = frozenset({FilterOperator.AND, FilterOperator.OR})
COLLECTION_OPERATORS = frozenset({FilterOperator.SOME, FilterOperator.ALL, FilterOperator.NONE})
VALUELESS_OPERATORS = frozenset(
    {
        FilterOperator.IS_NULL,
        FilterOperator.IS_NOT_NULL,
        FilterOperator.EMPTY,
        FilterOperator.NOT_EMPTY,
    }
)


@dataclass
class Filter:
    """
    One predicate of a Search.

    Simple operators compare `property` (a dotted path such as "father.id")
    against `value`. AND/OR hold a list of nested filters in `value`, NOT holds
    a single filter, and SOME/ALL/NONE hold a single filter that is applied to
    the elements of the collection named by `property`.
    """

    property: str = ""
    value: Any = None
    operator: FilterOperator = FilterOperator.EQUAL

    def __post_init__(self) -> None:
        # One-shot iterators would be exhausted by the first translation
        if self.operator in (FilterOperator.IN, FilterOperator.NOT_IN) and isinstance(self.value, Iterator):
            self.value = tuple(self.value)

    # ---- simple predicates -------------------------------------------------

    @classmethod
    def equal(cls, property: str, value: Any) -> "Filter":
        return cls(property, value, FilterOperator.EQUAL)

    @classmethod
    def not_equal(cls, property: str, value: Any) -> "Filter":
        return cls(property, value, FilterOperator.NOT_EQUAL)

    @classmethod
    def less_than(cls, property: str, value: Any) -> "Filter":
        return cls(property, value, FilterOperator.LESS_THAN)

    @classmethod
    def less_or_equal(cls, property: str, value: Any) -> "Filter":
        return cls(property, value, FilterOperator.LESS_OR_EQUAL)

    @classmethod
    def greater_than(cls, property: str, value: Any) -> "Filter":
        return cls(property, value, FilterOperator.GREATER_THAN)

    @classmethod
    def greater_or_equal(cls, property: str, value: Any) -> "Filter":
        return cls(property, value, FilterOperator.GREATER_OR_EQUAL)

    @classmethod
    def like(cls, property: str, pattern: str) -> "Filter":
        return cls(property, pattern, FilterOperator.LIKE)

    @classmethod
    def ilike(cls, property: str, pattern: str) -> "Filter":
        return cls(property, pattern, FilterOperator.ILIKE)

    @classmethod
    def in_(cls, property: str, values: Iterable[Any]) -> "Filter":
        return cls(property, values, FilterOperator.IN)

    @classmethod
    def not_in(cls, property: str, values: Iterable[Any]) -> "Filter":
        return cls(property, values, FilterOperator.NOT_IN)

    @classmethod
    def is_null(cls, property: str) -> "Filter":
        return cls(property, True, FilterOperator.IS_NULL)

    @classmethod
    def is_not_null(cls, property: str) -> "Filter":
        return cls(property, True, FilterOperator.IS_NOT_NULL)

    @classmethod
    def is_empty(cls, property: str) -> "Filter":
        return cls(property, True, FilterOperator.EMPTY)

    @classmethod
    def is_not_empty(cls, property: str) -> "Filter":
        return cls(property, True, FilterOperator.NOT_EMPTY)

    # ---- composite predicates ----------------------------------------------

    @classmethod
    def and_(cls, *filters: "Filter") -> "Filter":
        return cls("", list(filters), FilterOperator.AND)

    @classmethod
    def or_(cls, *filters: "Filter") -> "Filter":
        return cls("", list(filters), FilterOperator.OR)

    @classmethod
    def not_(cls, filter: "Filter") -> "Filter":
        return cls("", filter, FilterOperator.NOT)

    @classmethod
    def some(cls, property: str, filter: "Filter") -> "Filter":
        return cls(property, filter, FilterOperator.SOME)

    @classmethod
    def all(cls, property: str, filter: "Filter") -> "Filter":
        return cls(property, filter, FilterOperator.ALL)

    @classmethod
    def none(cls, property: str, filter: "Filter") -> "Filter":
        return cls(property, filter, FilterOperator.NONE)

    def add(self, filter: "Filter") -> "Filter":
        """Append a nested filter to an AND/OR filter."""
        if self.operator not in COMPOSITE_OPERATORS:
            raise TypeError(f"Cannot add nested filters to a {self.operator.value} filter")
        if filter is None:
            raise NullArgument("Nested filter must not be None")
        if self.value is None:
            self.value = []
        self.value.append(filter)
        return self

    def is_composite(self) -> bool:
        return self.operator in COMPOSITE_OPERATORS

    def takes_collection(self) -> bool:
        return self.operator in COLLECTION_OPERATORS

    def filters(self) -> list["Filter"]:
        """Nested filters of an AND/OR/NOT/SOME/ALL/NONE filter."""
        if self.operator in COMPOSITE_OPERATORS:
            return list(self.value or [])
        if self.operator is FilterOperator.NOT or self.operator in COLLECTION_OPERATORS:
            return [self.value] if self.value is not None else []
        return []

    def __str__(self) -> str:
        op = self.operator
        if op in COMPOSITE_OPERATORS:
            inner = f" {op.value.lower()} ".join(str(f) for f in self.filters())
            return f"({inner})" if inner else f"({op.value.lower()})"
        if op is FilterOperator.NOT:
            return f"not {self.value}"
        if op in COLLECTION_OPERATORS:
            return f"{op.value.lower()} {self.property} {{{self.value}}}"
        if op in VALUELESS_OPERATORS:
            return f"`{self.property}` {op.value.lower().replace('_', ' ')}"
        return f"`{self.property}` {op.value} {self.value!r}"


@dataclass
class Field:
    """A projected property, optionally aggregated. An empty property is the root entity."""

    property: str = ""
    operator: FieldOperator = FieldOperator.PROPERTY
    key: str | None = None

    def result_key(self) -> str:
        return self.key or self.property


@dataclass
class Sort:
    property: str
    desc: bool = False
    ignore_case: bool = False


@dataclass
class Fetch:
    """An association to load eagerly with entity results."""

    property: str
