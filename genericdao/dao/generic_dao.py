import logging
from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from sqlalchemy.orm import Session

from genericdao.common.exceptions import InvalidSearch, NullArgument
from genericdao.models import Base
from genericdao.search import ExampleOptions, Filter, Search, SearchResult

from .general_dao import GeneralDAO
from .reference import Reference

logger = logging.getLogger(__name__)

# Type variable for model classes
T = TypeVar("T", bound=Base)


class GenericDAO(Generic[T]):
    """
    GeneralDAO bound to a single entity class.

    Subclass it to give an entity its own DAO and register the instance with
    a DAODispatcher; overridden methods are then picked up for that class:

        class PersonDAO(GenericDAO[Person]):
            def save(self, entity: Person) -> bool:
                entity.last_name = entity.last_name.strip()
                return super().save(entity)
    """

    def __init__(self, model: type[T], session: Session, general_dao: GeneralDAO | None = None) -> None:
        if model is None:
            raise ValueError("Model cannot be None")
        if session is None and general_dao is None:
            raise ValueError("Session cannot be None")

        self.model: type[T] = model
        self.general_dao: GeneralDAO = general_dao or GeneralDAO(session)
        self.session: Session = self.general_dao.session
        logger.debug(f"Initialized {self.__class__.__name__} for model {self.model.__name__}")

    def find(self, id: Any) -> T | None:
        return self.general_dao.find(self.model, id)

    def find_by_ids(self, ids: Iterable[Any]) -> list[T | None]:
        return self.general_dao.find_by_ids(self.model, ids)

    def find_all(self) -> list[T]:
        return self.general_dao.find_all(self.model)

    def save(self, entity: T) -> bool:
        return self.general_dao.save(entity)

    def save_all(self, entities: Iterable[T]) -> list[bool]:
        return [self.save(entity) for entity in entities]

    def remove(self, entity: T) -> bool:
        return self.general_dao.remove(entity)

    def remove_all(self, entities: Iterable[T]) -> list[bool]:
        return [self.remove(entity) for entity in entities]

    def remove_by_id(self, id: Any) -> bool:
        return self.general_dao.remove_by_id(self.model, id)

    def remove_by_ids(self, ids: Iterable[Any]) -> list[bool]:
        return [self.remove_by_id(id) for id in ids]

    def search(self, search: Search) -> list[Any]:
        return self.general_dao.search(self._bind(search))

    def count(self, search: Search) -> int:
        return self.general_dao.count(self._bind(search))

    def search_and_count(self, search: Search) -> SearchResult:
        return self.general_dao.search_and_count(self._bind(search))

    def search_unique(self, search: Search) -> Any | None:
        return self.general_dao.search_unique(self._bind(search))

    def get_reference(self, id: Any) -> Reference:
        return self.general_dao.get_reference(self.model, id)

    def get_references(self, ids: Iterable[Any]) -> list[Reference]:
        return [self.get_reference(id) for id in ids]

    def refresh(self, *entities: T) -> None:
        self.general_dao.refresh(*entities)

    def is_attached(self, entity: T) -> bool:
        return self.general_dao.is_attached(entity)

    def flush(self) -> None:
        self.general_dao.flush()

    def get_filter_from_example(self, example: T, options: ExampleOptions | None = None) -> Filter:
        return self.general_dao.get_filter_from_example(example, options)

    def _bind(self, search: Search) -> Search:
        """Search restricted to this DAO's model; an unset class is filled in on a copy."""
        if search is None:
            raise NullArgument("Search must not be None")
        if search.search_class is None:
            return search.copy().set_search_class(self.model)
        if not issubclass(search.search_class, self.model):
            raise InvalidSearch(
                f"{self.__class__.__name__} cannot run a search for {search.search_class.__name__}"
            )
        return search
