from collections.abc import Iterable
from typing import Any

from genericdao.common.enums import FieldOperator, ResultMode
from genericdao.common.exceptions import NullArgument

from .filter import Fetch, Field, Filter, Sort


class Search:
    """
    Entity-agnostic query specification.

    A Search names the entity class to query and collects filters (ANDed
    unless `disjunction` is set), projected fields, sorts, eager fetches,
    paging bounds and the shape of the rows returned. Every mutator returns
    the Search so calls can be chained:

        search = (
            Search(Person)
            .add_filter_equal("father.id", bob.id)
            .add_field("first_name")
            .set_result_mode(Search.RESULT_SINGLE)
        )

    `clear()` resets the filters only; fields, sorts, fetches and paging are
    reset with their own `clear_*` methods.
    """

    RESULT_AUTO = ResultMode.ENTITY_OR_SINGLE
    RESULT_ENTITY = ResultMode.ENTITY
    RESULT_SINGLE = ResultMode.SINGLE_FIELD
    RESULT_ARRAY = ResultMode.FIELD_ARRAY
    RESULT_LIST = ResultMode.FIELD_ARRAY
    RESULT_MAP = ResultMode.FIELD_MAP

    def __init__(self, search_class: type | None = None) -> None:
        self.search_class: type | None = search_class
        self.filters: list[Filter] = []
        self.disjunction: bool = False
        self.fields: list[Field] = []
        self.sorts: list[Sort] = []
        self.fetches: list[Fetch] = []
        self.first_result: int = 0
        self.max_results: int = 0
        self.page: int = 0
        self.result_mode: ResultMode = ResultMode.ENTITY_OR_SINGLE
        self.distinct: bool = False

    def set_search_class(self, search_class: type | None) -> "Search":
        self.search_class = search_class
        return self

    # ---- filters -----------------------------------------------------------

    def add_filter(self, filter: Filter) -> "Search":
        if filter is None:
            raise NullArgument("Filter must not be None")
        self.filters.append(filter)
        return self

    def add_filters(self, *filters: Filter) -> "Search":
        for f in filters:
            self.add_filter(f)
        return self

    def add_filter_equal(self, property: str, value: Any) -> "Search":
        return self.add_filter(Filter.equal(property, value))

    def add_filter_not_equal(self, property: str, value: Any) -> "Search":
        return self.add_filter(Filter.not_equal(property, value))

    def add_filter_less_than(self, property: str, value: Any) -> "Search":
        return self.add_filter(Filter.less_than(property, value))

    def add_filter_less_or_equal(self, property: str, value: Any) -> "Search":
        return self.add_filter(Filter.less_or_equal(property, value))

    def add_filter_greater_than(self, property: str, value: Any) -> "Search":
        return self.add_filter(Filter.greater_than(property, value))

    def add_filter_greater_or_equal(self, property: str, value: Any) -> "Search":
        return self.add_filter(Filter.greater_or_equal(property, value))

    def add_filter_like(self, property: str, pattern: str) -> "Search":
        return self.add_filter(Filter.like(property, pattern))

    def add_filter_ilike(self, property: str, pattern: str) -> "Search":
        return self.add_filter(Filter.ilike(property, pattern))

    def add_filter_in(self, property: str, values: Iterable[Any]) -> "Search":
        return self.add_filter(Filter.in_(property, values))

    def add_filter_not_in(self, property: str, values: Iterable[Any]) -> "Search":
        return self.add_filter(Filter.not_in(property, values))

    def add_filter_null(self, property: str) -> "Search":
        return self.add_filter(Filter.is_null(property))

    def add_filter_not_null(self, property: str) -> "Search":
        return self.add_filter(Filter.is_not_null(property))

    def add_filter_empty(self, property: str) -> "Search":
        return self.add_filter(Filter.is_empty(property))

    def add_filter_not_empty(self, property: str) -> "Search":
        return self.add_filter(Filter.is_not_empty(property))

    def add_filter_and(self, *filters: Filter) -> "Search":
        return self.add_filter(Filter.and_(*filters))

    def add_filter_or(self, *filters: Filter) -> "Search":
        return self.add_filter(Filter.or_(*filters))

    def add_filter_not(self, filter: Filter) -> "Search":
        return self.add_filter(Filter.not_(filter))

    def add_filter_some(self, property: str, filter: Filter) -> "Search":
        return self.add_filter(Filter.some(property, filter))

    def add_filter_all(self, property: str, filter: Filter) -> "Search":
        return self.add_filter(Filter.all(property, filter))

    def add_filter_none(self, property: str, filter: Filter) -> "Search":
        return self.add_filter(Filter.none(property, filter))

    def remove_filter(self, filter: Filter) -> "Search":
        self.filters = [f for f in self.filters if f is not filter]
        return self

    def clear_filters(self) -> "Search":
        self.filters = []
        return self

    def set_disjunction(self, disjunction: bool = True) -> "Search":
        self.disjunction = disjunction
        return self

    # ---- fields, sorts, fetches --------------------------------------------

    def add_field(
        self, property: str, operator: FieldOperator = FieldOperator.PROPERTY, key: str | None = None
    ) -> "Search":
        if property is None:
            raise NullArgument("Field property must not be None")
        self.fields.append(Field(property, operator, key))
        return self

    def add_fields(self, *properties: str) -> "Search":
        for prop in properties:
            self.add_field(prop)
        return self

    def clear_fields(self) -> "Search":
        self.fields = []
        return self

    def add_sort(self, property: str, desc: bool = False, ignore_case: bool = False) -> "Search":
        if not property:
            raise NullArgument("Sort property must not be empty")
        self.sorts.append(Sort(property, desc, ignore_case))
        return self

    def add_sort_asc(self, property: str, ignore_case: bool = False) -> "Search":
        return self.add_sort(property, False, ignore_case)

    def add_sort_desc(self, property: str, ignore_case: bool = False) -> "Search":
        return self.add_sort(property, True, ignore_case)

    def clear_sorts(self) -> "Search":
        self.sorts = []
        return self

    def add_fetch(self, property: str) -> "Search":
        if not property:
            raise NullArgument("Fetch property must not be empty")
        if all(f.property != property for f in self.fetches):
            self.fetches.append(Fetch(property))
        return self

    def clear_fetches(self) -> "Search":
        self.fetches = []
        return self

    # ---- paging and result shape -------------------------------------------

    def set_first_result(self, first_result: int) -> "Search":
        if first_result < 0:
            raise ValueError(f"first_result must be >= 0, got {first_result}")
        self.first_result = first_result
        return self

    def set_max_results(self, max_results: int) -> "Search":
        if max_results < 0:
            raise ValueError(f"max_results must be >= 0, got {max_results}")
        self.max_results = max_results
        return self

    def set_page(self, page: int) -> "Search":
        if page < 0:
            raise ValueError(f"page must be >= 0, got {page}")
        self.page = page
        return self

    def clear_paging(self) -> "Search":
        self.first_result = 0
        self.max_results = 0
        self.page = 0
        return self

    def calc_first_result(self) -> int:
        """Offset of the first row, derived from `page` when `first_result` is unset."""
        if self.first_result > 0:
            return self.first_result
        if self.page > 0 and self.max_results > 0:
            return self.page * self.max_results
        return 0

    def is_paged(self) -> bool:
        return self.calc_first_result() > 0 or self.max_results > 0

    def set_result_mode(self, result_mode: ResultMode) -> "Search":
        self.result_mode = ResultMode(result_mode)
        return self

    def set_distinct(self, distinct: bool = True) -> "Search":
        self.distinct = distinct
        return self

    def clear(self) -> "Search":
        """Reset the filters. Fields, sorts, fetches and paging are left untouched."""
        return self.clear_filters()

    def copy(self) -> "Search":
        other = Search(self.search_class)
        other.filters = list(self.filters)
        other.disjunction = self.disjunction
        other.fields = list(self.fields)
        other.sorts = list(self.sorts)
        other.fetches = list(self.fetches)
        other.first_result = self.first_result
        other.max_results = self.max_results
        other.page = self.page
        other.result_mode = self.result_mode
        other.distinct = self.distinct
        return other

    def __repr__(self) -> str:
        name = self.search_class.__name__ if self.search_class is not None else None
        parts = [f"class={name}"]
        if self.filters:
            joiner = " or " if self.disjunction else " and "
            parts.append("filters=" + joiner.join(str(f) for f in self.filters))
        if self.fields:
            parts.append("fields=" + ",".join(f.result_key() or "*" for f in self.fields))
        if self.sorts:
            parts.append(
                "sorts=" + ",".join(f"{s.property} {'desc' if s.desc else 'asc'}" for s in self.sorts)
            )
        if self.is_paged():
            parts.append(f"first={self.calc_first_result()} max={self.max_results}")
        parts.append(f"mode={self.result_mode.value}")
        if self.distinct:
            parts.append("distinct")
        return f"<Search {' '.join(parts)}>"
