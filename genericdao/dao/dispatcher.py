"""
Per-class routing of DAO operations.

A DAODispatcher exposes the GeneralDAO API but forwards each call to the
DAO registered for the entity's class, when that DAO implements the
operation. Registered DAOs are duck-typed: any object with methods named
like GenericDAO's (`find(id)`, `save(entity)`, `search(search)`, ...) is
accepted, and operations it lacks fall back to the GeneralDAO.

    dispatcher = DAODispatcher(GeneralDAO(session), {Person: PersonDAO(Person, session)})
    dispatcher.save(person)      # PersonDAO.save(person)
    dispatcher.save(pet)         # GeneralDAO.save(pet)
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from genericdao.common.exceptions import DAODispatcherException, NullArgument
from genericdao.search import ExampleOptions, Filter, QueryTranslator, Search, SearchResult

from .general_dao import GeneralDAO
from .reference import Reference

logger = logging.getLogger(__name__)

# Operations a registered DAO may override, in their class-bound form
OPERATIONS = (
    "find",
    "find_by_ids",
    "find_all",
    "save",
    "save_all",
    "remove",
    "remove_all",
    "remove_by_id",
    "remove_by_ids",
    "search",
    "count",
    "search_and_count",
    "search_unique",
    "get_reference",
    "get_references",
    "refresh",
    "is_attached",
    "flush",
    "get_filter_from_example",
)


def type_name(entity_class: type) -> str:
    if entity_class is None:
        raise NullArgument("Entity class must not be None")
    return f"{entity_class.__module__}.{entity_class.__qualname__}"


def entity_class_of(entity: Any) -> type:
    if entity is None:
        raise NullArgument("Entity must not be None")
    if isinstance(entity, Reference):
        return entity.entity_class
    return type(entity)


class DAODispatcher:
    def __init__(self, general_dao: GeneralDAO, specific_daos: Mapping[type | str, Any] | None = None) -> None:
        if general_dao is None:
            raise ValueError("GeneralDAO cannot be None")

        self.general_dao: GeneralDAO = general_dao
        self._specific_daos: dict[str, Any] = {}
        # Registry name -> operations the registered DAO implements
        self._routes: dict[str, frozenset[str]] = {}
        self.set_specific_daos(specific_daos or {})

    @property
    def specific_daos(self) -> dict[str, Any]:
        return dict(self._specific_daos)

    def set_specific_daos(self, specific_daos: Mapping[type | str, Any]) -> None:
        """
        Replace the registry. Keys are entity classes or their names.

        A class key is stored under its fully qualified name; lookups try
        that name first, then the bare class name.
        """
        daos: dict[str, Any] = {}
        routes: dict[str, frozenset[str]] = {}
        for key, dao in specific_daos.items():
            if key is None or dao is None:
                raise NullArgument("Specific DAO registry cannot contain None")
            name = type_name(key) if isinstance(key, type) else str(key)
            daos[name] = dao
            routes[name] = frozenset(op for op in OPERATIONS if callable(getattr(dao, op, None)))
            logger.debug(f"Registered {type(dao).__name__} for {name}: {sorted(routes[name])}")

        self._specific_daos = daos
        self._routes = routes

    def _registry_name(self, entity_class: type) -> str | None:
        name = type_name(entity_class)
        if name in self._specific_daos:
            return name
        if entity_class.__name__ in self._specific_daos:
            return entity_class.__name__
        return None

    def specific_dao_for(self, entity_class: type) -> Any | None:
        name = self._registry_name(entity_class)
        return self._specific_daos[name] if name is not None else None

    def _route(self, entity_class: type, operation: str) -> Callable | None:
        name = self._registry_name(entity_class)
        if name is None or operation not in self._routes[name]:
            return None
        return getattr(self._specific_daos[name], operation)

    def _grouped(
        self, entities: Iterable[Any], batch_op: str, single_op: str, fallback: Callable[[list], list]
    ) -> list:
        """Run a batch operation per entity class, keeping results aligned with `entities`."""
        entities = list(entities)
        results: list = [None] * len(entities)
        groups: dict[type, list[int]] = {}
        for index, entity in enumerate(entities):
            groups.setdefault(entity_class_of(entity), []).append(index)

        for entity_class, indexes in groups.items():
            batch = [entities[i] for i in indexes]
            batch_call = self._route(entity_class, batch_op)
            single_call = self._route(entity_class, single_op)
            if batch_call is not None:
                out = batch_call(batch)
            elif single_call is not None:
                out = [single_call(entity) for entity in batch]
            else:
                out = fallback(batch)
            for i, value in zip(indexes, out):
                results[i] = value
        return results

    # ---- lookup ------------------------------------------------------------

    def find(self, entity_class: type, id: Any) -> Any | None:
        specific = self._route(entity_class, "find")
        if specific is not None:
            return specific(id)
        return self.general_dao.find(entity_class, id)

    def find_by_ids(self, entity_class: type, ids: Iterable[Any]) -> list[Any | None]:
        specific = self._route(entity_class, "find_by_ids")
        if specific is not None:
            return specific(ids)
        return self.general_dao.find_by_ids(entity_class, ids)

    def find_all(self, entity_class: type) -> list[Any]:
        specific = self._route(entity_class, "find_all")
        if specific is not None:
            return specific()
        return self.general_dao.find_all(entity_class)

    # ---- save / remove -----------------------------------------------------

    def save(self, entity: Any) -> bool:
        specific = self._route(entity_class_of(entity), "save")
        if specific is not None:
            return specific(entity)
        return self.general_dao.save(entity)

    def save_all(self, entities: Iterable[Any]) -> list[bool]:
        return self._grouped(entities, "save_all", "save", self.general_dao.save_all)

    def remove(self, entity: Any) -> bool:
        specific = self._route(entity_class_of(entity), "remove")
        if specific is not None:
            return specific(entity)
        return self.general_dao.remove(entity)

    def remove_all(self, entities: Iterable[Any]) -> list[bool]:
        return self._grouped(entities, "remove_all", "remove", self.general_dao.remove_all)

    def remove_by_id(self, entity_class: type, id: Any) -> bool:
        specific = self._route(entity_class, "remove_by_id")
        if specific is not None:
            return specific(id)
        return self.general_dao.remove_by_id(entity_class, id)

    def remove_by_ids(self, entity_class: type, ids: Iterable[Any]) -> list[bool]:
        specific = self._route(entity_class, "remove_by_ids")
        if specific is not None:
            return specific(ids)
        return self.general_dao.remove_by_ids(entity_class, ids)

    # ---- search ------------------------------------------------------------

    def search(self, search: Search) -> list[Any]:
        specific = self._route(QueryTranslator.check_search(search), "search")
        if specific is not None:
            return specific(search)
        return self.general_dao.search(search)

    def count(self, search: Search) -> int:
        specific = self._route(QueryTranslator.check_search(search), "count")
        if specific is not None:
            return specific(search)
        return self.general_dao.count(search)

    def search_and_count(self, search: Search) -> SearchResult:
        specific = self._route(QueryTranslator.check_search(search), "search_and_count")
        if specific is not None:
            return specific(search)
        return self.general_dao.search_and_count(search)

    def search_unique(self, search: Search) -> Any | None:
        specific = self._route(QueryTranslator.check_search(search), "search_unique")
        if specific is not None:
            return specific(search)
        return self.general_dao.search_unique(search)

    def get_filter_from_example(self, example: Any, options: ExampleOptions | None = None) -> Filter:
        specific = self._route(entity_class_of(example), "get_filter_from_example")
        if specific is not None:
            return specific(example, options)
        return self.general_dao.get_filter_from_example(example, options)

    # ---- references and session state --------------------------------------

    def get_reference(self, entity_class: type, id: Any) -> Reference:
        specific = self._route(entity_class, "get_reference")
        if specific is not None:
            return specific(id)
        return self.general_dao.get_reference(entity_class, id)

    def get_references(self, entity_class: type, ids: Iterable[Any]) -> list[Reference]:
        specific = self._route(entity_class, "get_references")
        if specific is not None:
            return specific(ids)
        return self.general_dao.get_references(entity_class, ids)

    def refresh(self, *entities: Any) -> None:
        groups: dict[type, list[Any]] = {}
        for entity in entities:
            groups.setdefault(entity_class_of(entity), []).append(entity)
        for entity_class, batch in groups.items():
            specific = self._route(entity_class, "refresh")
            if specific is not None:
                specific(*batch)
            else:
                self.general_dao.refresh(*batch)

    def is_attached(self, entity: Any) -> bool:
        specific = self._route(entity_class_of(entity), "is_attached")
        if specific is not None:
            return specific(entity)
        return self.general_dao.is_attached(entity)

    def flush(self, entity_class: type | None = None) -> None:
        """
        Flush pending changes.

        Without a class the flush is only unambiguous when no specific DAOs
        are registered; otherwise the class selects whose flush runs.

        Raises:
            DAODispatcherException: If `entity_class` is omitted while
                specific DAOs are registered.
        """
        if entity_class is None:
            if self._routes:
                raise DAODispatcherException(
                    "flush() needs an entity class when specific DAOs are registered; use flush(entity_class)"
                )
            self.general_dao.flush()
            return

        specific = self._route(entity_class, "flush")
        if specific is not None:
            specific()
        else:
            self.general_dao.flush()
