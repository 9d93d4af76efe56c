"""
Search → SQLAlchemy Select translation.

QueryTranslator turns a Search into two statements:

- a result statement whose SELECT list follows the Search's fields and
  whose rows are reshaped according to its result mode, and
- a count statement for the same rows without paging.

Dotted property paths ("father.first_name") become LEFT OUTER JOINs on
aliased targets. Each path is joined once per statement; later references to
the same path reuse the alias. A path ending in the target id of a
many-to-one ("father.id") is answered by the local foreign-key column, so no
join is emitted for it.

Filters on collections (SOME / ALL / NONE) become correlated EXISTS
subqueries; dotted paths inside them are resolved with has()/any().
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Select, and_, distinct, false, func, literal, not_, or_, select, true
from sqlalchemy.engine import Result
from sqlalchemy.orm import aliased, selectinload

from genericdao.common.config import SEARCH_CONFIG
from genericdao.common.enums import FieldOperator, FilterOperator, PropertyKind, ResultMode
from genericdao.common.exceptions import InvalidSearch, NullArgument

from .filter import COLLECTION_OPERATORS, Field, Filter
from .metadata import MetadataRegistry, PropertyInfo, default_registry
from .search import Search

logger = logging.getLogger(__name__)

_AGGREGATES: dict[FieldOperator, Callable[[Any], Any]] = {
    FieldOperator.COUNT: func.count,
    FieldOperator.COUNT_DISTINCT: lambda expr: func.count(distinct(expr)),
    FieldOperator.MAX: func.max,
    FieldOperator.MIN: func.min,
    FieldOperator.SUM: func.sum,
    FieldOperator.AVG: func.avg,
}

_COMPARISONS = {
    FilterOperator.LESS_THAN: lambda col, v: col < v,
    FilterOperator.GREATER_THAN: lambda col, v: col > v,
    FilterOperator.LESS_OR_EQUAL: lambda col, v: col <= v,
    FilterOperator.GREATER_OR_EQUAL: lambda col, v: col >= v,
}


@dataclass
class _Resolved:
    """A property path resolved to the entity (or alias) that owns its last segment."""

    owner: Any
    key: str
    info: PropertyInfo

    def attribute(self):
        return getattr(self.owner, self.key)


class _JoinContext:
    """Resolves dotted paths against the root entity, joining each association path once."""

    def __init__(self, metadata: MetadataRegistry, root: type) -> None:
        self.metadata = metadata
        self.root = root
        self._entities: dict[str, tuple[Any, type]] = {"": (root, root)}
        self.joins: list[tuple[Any, Any]] = []

    def entity_for(self, path: str) -> tuple[Any, type]:
        cached = self._entities.get(path)
        if cached is not None:
            return cached

        parent_path, _, key = path.rpartition(".")
        parent, parent_class = self.entity_for(parent_path)
        info = self.metadata.get(parent_class).get_property(key)
        if not info.is_association():
            raise InvalidSearch(f"'{path}' is not an association of {self.root.__name__}")

        alias = aliased(info.target_class)
        self.joins.append((alias, getattr(parent, key)))
        self._entities[path] = (alias, info.target_class)
        logger.debug(f"Joined '{path}' as {info.target_class.__name__} alias")
        return alias, info.target_class

    def resolve(self, path: str) -> _Resolved:
        if not path:
            raise InvalidSearch("Property path must not be empty")

        parent_path, _, key = path.rpartition(".")
        if parent_path and parent_path not in self._entities:
            grand_path, _, assoc = parent_path.rpartition(".")
            grand, grand_class = self.entity_for(grand_path)
            grand_meta = self.metadata.get(grand_class)
            assoc_info = grand_meta.get_property(assoc)
            if assoc_info.fk_property and key == assoc_info.target_id_property:
                return _Resolved(grand, assoc_info.fk_property, grand_meta.get_property(assoc_info.fk_property))

        owner, owner_class = self.entity_for(parent_path)
        return _Resolved(owner, key, self.metadata.get(owner_class).get_property(key))

    def predicate(self, path: str, build: Callable[[_Resolved], Any]):
        return build(self.resolve(path))

    def apply_joins(self, stmt: Select) -> Select:
        for alias, onclause in self.joins:
            stmt = stmt.outerjoin(alias, onclause)
        return stmt


class _ExistsContext:
    """Resolves paths inside a SOME/ALL/NONE filter, relative to the collection element."""

    def __init__(self, metadata: MetadataRegistry, element: Any, element_class: type) -> None:
        self.metadata = metadata
        self.element = element
        self.element_class = element_class

    def predicate(self, path: str, build: Callable[[_Resolved], Any]):
        if not path:
            raise InvalidSearch("Property path must not be empty")
        return self._walk(self.element, self.element_class, path.split("."), build)

    def _walk(self, owner: Any, owner_class: type, segments: list[str], build):
        key = segments[0]
        info = self.metadata.get(owner_class).get_property(key)
        if len(segments) == 1:
            return build(_Resolved(owner, key, info))
        if not info.is_association():
            raise InvalidSearch(f"'{key}' is not an association of {owner_class.__name__}")

        target = aliased(info.target_class)
        inner = self._walk(target, info.target_class, segments[1:], build)
        attr = getattr(owner, key).of_type(target)
        return attr.any(inner) if info.kind is PropertyKind.COLLECTION else attr.has(inner)


@dataclass
class TranslatedSearch:
    """Executable form of a Search."""

    statement: Select
    count_statement: Select
    result_mode: ResultMode
    keys: list[str] = field(default_factory=list)

    def shape(self, result: Result) -> list:
        """Reshape executed rows according to the effective result mode."""
        if self.result_mode in (ResultMode.ENTITY, ResultMode.SINGLE_FIELD):
            return list(result.scalars().all())
        if self.result_mode is ResultMode.FIELD_MAP:
            return [dict(zip(self.keys, row)) for row in result]
        return [tuple(row) for row in result]


class QueryTranslator:
    def __init__(self, metadata: MetadataRegistry | None = None, max_results_limit: int | None = None) -> None:
        self.metadata = metadata or default_registry
        self.max_results_limit = (
            SEARCH_CONFIG["max_results_limit"] if max_results_limit is None else max_results_limit
        )

    @staticmethod
    def check_search(search: Search | None) -> type:
        if search is None:
            raise NullArgument("Search must not be None")
        if search.search_class is None:
            raise NullArgument("Search class must be set")
        return search.search_class

    # ---- public API --------------------------------------------------------

    def translate(self, search: Search) -> TranslatedSearch:
        root = self.check_search(search)
        self.metadata.get(root)
        mode = self._result_mode(search)

        ctx = _JoinContext(self.metadata, root)
        where = self._where(ctx, search)

        if search.fields:
            columns = [self._field_expression(ctx, f) for f in search.fields]
        else:
            columns = [root]

        stmt = select(*columns).select_from(root)
        for sort in search.sorts:
            stmt = stmt.order_by(self._sort_expression(ctx, sort))

        stmt = ctx.apply_joins(stmt)
        if where is not None:
            stmt = stmt.where(where)
        if search.distinct:
            stmt = stmt.distinct()

        if search.fetches:
            if mode is ResultMode.ENTITY:
                stmt = stmt.options(*(self._fetch_option(root, f.property) for f in search.fetches))
            else:
                logger.debug(f"Ignoring fetches for {mode.value} results of {root.__name__}")

        stmt = self._apply_paging(stmt, search)

        return TranslatedSearch(
            statement=stmt,
            count_statement=self.translate_count(search),
            result_mode=mode,
            keys=[f.result_key() for f in search.fields] or [""],
        )

    def translate_count(self, search: Search) -> Select:
        """
        Number of rows the search yields without paging; sorts and fetches are ignored.

        Fields matter in two cases: aggregate fields always produce exactly one
        row, and a distinct search counts distinct projected values (or
        distinct ids when nothing is projected).
        """
        root = self.check_search(search)
        meta = self.metadata.get(root)

        ctx = _JoinContext(self.metadata, root)
        where = self._where(ctx, search)

        if any(f.operator is not FieldOperator.PROPERTY for f in search.fields):
            return select(literal(1))

        if search.distinct:
            if search.fields:
                columns = [self._field_expression(ctx, f) for f in search.fields]
            else:
                columns = [getattr(root, key) for key in meta.id_properties]
            inner = ctx.apply_joins(select(*columns).select_from(root))
            if where is not None:
                inner = inner.where(where)
            return select(func.count()).select_from(inner.distinct().subquery())

        stmt = ctx.apply_joins(select(func.count()).select_from(root))
        if where is not None:
            stmt = stmt.where(where)
        return stmt

    # ---- result shape ------------------------------------------------------

    def _result_mode(self, search: Search) -> ResultMode:
        mode = search.result_mode
        count = len(search.fields)
        if mode is ResultMode.ENTITY and count:
            raise InvalidSearch(f"ENTITY results cannot project fields, got {count}")
        if mode is ResultMode.SINGLE_FIELD and count != 1:
            raise InvalidSearch(f"SINGLE_FIELD results require exactly one field, got {count}")
        if mode is ResultMode.ENTITY_OR_SINGLE:
            if count == 0:
                return ResultMode.ENTITY
            if count == 1:
                return ResultMode.SINGLE_FIELD
            return ResultMode.FIELD_ARRAY
        return mode

    # ---- filters -----------------------------------------------------------

    def _where(self, ctx: _JoinContext, search: Search):
        criteria = [self._criterion(ctx, f) for f in search.filters]
        if not criteria:
            return None
        return or_(*criteria) if search.disjunction else and_(*criteria)

    def _criterion(self, ctx, flt: Filter):
        op = flt.operator
        if op is FilterOperator.AND:
            return and_(true(), *(self._criterion(ctx, f) for f in self._nested(flt)))
        if op is FilterOperator.OR:
            return or_(false(), *(self._criterion(ctx, f) for f in self._nested(flt)))
        if op is FilterOperator.NOT:
            if not isinstance(flt.value, Filter):
                raise InvalidSearch(f"NOT requires a single nested filter, got {flt.value!r}")
            return not_(self._criterion(ctx, flt.value))
        if op in COLLECTION_OPERATORS:
            return ctx.predicate(flt.property, lambda res: self._collection_criterion(res, flt))
        return ctx.predicate(flt.property, lambda res: self._simple_criterion(res, flt))

    @staticmethod
    def _nested(flt: Filter) -> list[Filter]:
        value = flt.value or []
        if isinstance(value, Filter) or not isinstance(value, Iterable):
            raise InvalidSearch(f"{flt.operator.value} requires a list of filters, got {value!r}")
        nested = list(value)
        if not all(isinstance(f, Filter) for f in nested):
            raise InvalidSearch(f"{flt.operator.value} accepts only Filter instances")
        return nested

    def _collection_criterion(self, res: _Resolved, flt: Filter):
        if res.info.kind is not PropertyKind.COLLECTION:
            raise InvalidSearch(f"{flt.operator.value} requires a collection property, '{res.key}' is not one")
        if not isinstance(flt.value, Filter):
            raise InvalidSearch(f"{flt.operator.value} requires a single nested filter, got {flt.value!r}")

        element = aliased(res.info.target_class)
        inner = self._criterion(_ExistsContext(self.metadata, element, res.info.target_class), flt.value)
        attr = res.attribute().of_type(element)

        if flt.operator is FilterOperator.SOME:
            return attr.any(inner)
        if flt.operator is FilterOperator.NONE:
            return not_(attr.any(inner))
        return not_(attr.any(not_(inner)))

    def _simple_criterion(self, res: _Resolved, flt: Filter):
        op, value, info = flt.operator, flt.value, res.info
        attr = res.attribute()

        if op in (FilterOperator.EMPTY, FilterOperator.NOT_EMPTY):
            if info.kind is PropertyKind.COLLECTION:
                expr = not_(attr.any())
            elif info.kind is PropertyKind.ENTITY:
                expr = attr == None  # noqa: E711
            elif info.python_type is str:
                expr = or_(attr.is_(None), attr == "")
            else:
                expr = attr.is_(None)
            return expr if op is FilterOperator.EMPTY else not_(expr)

        if info.kind is PropertyKind.COLLECTION:
            raise InvalidSearch(
                f"'{res.key}' is a collection; use SOME/ALL/NONE or EMPTY/NOT_EMPTY instead of {op.value}"
            )

        if op is FilterOperator.IS_NULL or (op is FilterOperator.EQUAL and value is None):
            return attr == None if info.is_association() else attr.is_(None)  # noqa: E711
        if op is FilterOperator.IS_NOT_NULL or (op is FilterOperator.NOT_EQUAL and value is None):
            return attr != None if info.is_association() else attr.is_not(None)  # noqa: E711
        if op is FilterOperator.EQUAL:
            return attr == value
        if op is FilterOperator.NOT_EQUAL:
            return attr != value

        if info.is_association():
            raise InvalidSearch(f"{op.value} cannot be applied to association '{res.key}'")

        if op in _COMPARISONS:
            if value is None:
                raise InvalidSearch(f"{op.value} on '{flt.property}' requires a value")
            return _COMPARISONS[op](attr, value)

        if op in (FilterOperator.LIKE, FilterOperator.ILIKE):
            if not isinstance(value, str):
                raise InvalidSearch(f"{op.value} on '{flt.property}' requires a string pattern, got {value!r}")
            return attr.like(value) if op is FilterOperator.LIKE else attr.ilike(value)

        if op in (FilterOperator.IN, FilterOperator.NOT_IN):
            if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
                raise InvalidSearch(f"{op.value} on '{flt.property}' requires a collection of values, got {value!r}")
            values = list(value)
            return attr.in_(values) if op is FilterOperator.IN else attr.not_in(values)

        raise InvalidSearch(f"Unsupported filter operator: {op!r}")

    # ---- fields, sorts, fetches, paging ------------------------------------

    def _field_expression(self, ctx: _JoinContext, fld: Field):
        if not fld.property:
            expr, entity_class = ctx.root, ctx.root
        else:
            res = ctx.resolve(fld.property)
            if res.info.is_association():
                expr, entity_class = ctx.entity_for(fld.property)
            else:
                expr, entity_class = res.attribute(), None

        if fld.operator is FieldOperator.PROPERTY:
            return expr

        if entity_class is not None:
            if fld.operator not in (FieldOperator.COUNT, FieldOperator.COUNT_DISTINCT):
                raise InvalidSearch(f"{fld.operator.value} cannot be applied to entity '{fld.property or '*'}'")
            key = self.metadata.get(entity_class).id_property
            expr = getattr(expr, key)

        return _AGGREGATES[fld.operator](expr)

    @staticmethod
    def _sort_expression(ctx: _JoinContext, sort):
        res = ctx.resolve(sort.property)
        if not res.info.is_column():
            raise InvalidSearch(f"Cannot sort by association '{sort.property}'")
        expr = res.attribute()
        if sort.ignore_case:
            expr = func.lower(expr)
        return expr.desc() if sort.desc else expr.asc()

    def _fetch_option(self, root: type, path: str):
        option = None
        owner = root
        for key in path.split("."):
            info = self.metadata.get(owner).get_property(key)
            if not info.is_association():
                raise InvalidSearch(f"Cannot fetch '{path}': '{key}' is not an association")
            attr = getattr(owner, key)
            option = selectinload(attr) if option is None else option.selectinload(attr)
            owner = info.target_class
        return option

    def _apply_paging(self, stmt: Select, search: Search) -> Select:
        max_results = search.max_results
        if self.max_results_limit and (max_results == 0 or max_results > self.max_results_limit):
            logger.debug(f"Capping max_results {max_results} at {self.max_results_limit}")
            max_results = self.max_results_limit

        first_result = search.calc_first_result()
        if first_result:
            stmt = stmt.offset(first_result)
        if max_results:
            stmt = stmt.limit(max_results)
        return stmt

