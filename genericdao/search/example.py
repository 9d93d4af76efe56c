"""
Query-by-example: derive a Filter from a sample entity instance.

    example = Person(first_name="Bob", last_name="Jones")
    search = Search(Person).add_filter(get_filter_from_example(example))

Null properties are skipped by default; zero values (0, False, "") are kept
unless `exclude_zeros` is set.
"""

import logging
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from genericdao.common.enums import FilterOperator, LikeMode, PropertyKind
from genericdao.common.exceptions import NullArgument

from .filter import Filter
from .metadata import MetadataRegistry, PropertyInfo, default_registry

logger = logging.getLogger(__name__)


class ExampleOptions(BaseModel):
    """Controls which properties of a sample become filters, and how strings match."""

    model_config = ConfigDict(validate_assignment=True)

    exclude_zeros: bool = Field(False, description="Skip 0, False and empty strings")
    exclude_nulls: bool = Field(True, description="Skip None values instead of filtering on IS NULL")
    exclude_props: set[str] = Field(default_factory=set, description="Properties never considered")
    include_props: set[str] = Field(
        default_factory=set, description="When non-empty, the only properties considered"
    )
    like_mode: LikeMode = Field(LikeMode.EXACT, description="Pattern used for string properties")
    ignore_case: bool = Field(False, description="Case-insensitive string matching")

    def set_exclude_zeros(self, exclude_zeros: bool = True) -> "ExampleOptions":
        self.exclude_zeros = exclude_zeros
        return self

    def set_exclude_nulls(self, exclude_nulls: bool = True) -> "ExampleOptions":
        self.exclude_nulls = exclude_nulls
        return self

    def set_like_mode(self, like_mode: LikeMode) -> "ExampleOptions":
        self.like_mode = like_mode
        return self

    def set_ignore_case(self, ignore_case: bool = True) -> "ExampleOptions":
        self.ignore_case = ignore_case
        return self

    def exclude_prop(self, *properties: str) -> "ExampleOptions":
        self.exclude_props = self.exclude_props | set(properties)
        return self

    def include_prop(self, *properties: str) -> "ExampleOptions":
        self.include_props = self.include_props | set(properties)
        return self

    def is_considered(self, name: str) -> bool:
        if name in self.exclude_props:
            return False
        return not self.include_props or name in self.include_props


def is_zero(value: Any) -> bool:
    if isinstance(value, bool):
        return value is False
    if isinstance(value, (int, float, Decimal)):
        return value == 0
    if isinstance(value, str):
        return value == ""
    return False


def _string_filter(name: str, value: str, options: ExampleOptions) -> Filter:
    if options.like_mode is LikeMode.EXACT and not options.ignore_case:
        return Filter.equal(name, value)

    if options.like_mode is LikeMode.START:
        pattern = f"{value}%"
    elif options.like_mode is LikeMode.END:
        pattern = f"%{value}"
    elif options.like_mode is LikeMode.ANYWHERE:
        pattern = f"%{value}%"
    else:
        pattern = value

    operator = FilterOperator.ILIKE if options.ignore_case else FilterOperator.LIKE
    return Filter(name, pattern, operator)


def _association_filters(info: PropertyInfo, value: Any, registry: MetadataRegistry) -> list[Filter]:
    target = registry.for_instance(value)
    id = target.get_id(value)
    if id is None:
        logger.debug(f"Skipping association '{info.name}': example value has no identifier")
        return []
    if len(target.id_properties) == 1:
        return [Filter.equal(f"{info.name}.{target.id_properties[0]}", id)]
    return [Filter.equal(f"{info.name}.{key}", part) for key, part in zip(target.id_properties, id)]


def get_filter_from_example(
    example: Any,
    options: ExampleOptions | None = None,
    registry: MetadataRegistry | None = None,
) -> Filter:
    """
    Build an AND filter from the non-excluded properties of `example`.

    Identifiers and collections are never part of the filter. A many-to-one
    association contributes an EQUAL filter on its target's id; its raw
    foreign-key column is only used when the association itself is unset.

    Returns:
        A single AND Filter. An example with nothing to compare yields an
        empty AND, which matches every row.

    Raises:
        NullArgument: If `example` is None.
    """
    if example is None:
        raise NullArgument("Example must not be None")

    options = options or ExampleOptions()
    registry = registry or default_registry
    meta = registry.for_instance(example)

    filters: list[Filter] = []
    for info in meta.properties.values():
        name = info.name
        if name in meta.id_properties or info.kind is PropertyKind.COLLECTION:
            continue
        if not options.is_considered(name):
            continue

        value = getattr(example, name)

        if name in meta.foreign_keys:
            owner = next(
                p for p in meta.properties.values() if p.kind is PropertyKind.ENTITY and p.fk_property == name
            )
            if value is None or getattr(example, owner.name) is not None:
                continue

        if value is None:
            if not options.exclude_nulls:
                filters.append(Filter.is_null(name))
            continue

        if options.exclude_zeros and is_zero(value):
            continue

        if info.kind is PropertyKind.ENTITY:
            filters.extend(_association_filters(info, value, registry))
        elif isinstance(value, str):
            filters.append(_string_filter(name, value, options))
        else:
            filters.append(Filter.equal(name, value))

    logger.debug(f"Example {type(example).__name__} produced {len(filters)} filter(s)")
    return Filter.and_(*filters)
