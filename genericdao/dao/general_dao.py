import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import func, select
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, make_transient, make_transient_to_detached
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.util import identity_key

from genericdao.common.exceptions import NonUniqueResult, NullArgument, PersistenceError
from genericdao.search import (
    EntityMetadata,
    ExampleOptions,
    Filter,
    MetadataRegistry,
    QueryTranslator,
    Search,
    SearchResult,
    default_registry,
    get_filter_from_example,
)

from .reference import Reference

logger = logging.getLogger(__name__)


class GeneralDAO:
    """
    Class-agnostic persistence API over a SQLAlchemy Session.

    Every operation takes the entity class (or infers it from the entity)
    and runs inside the caller's unit-of-work: the DAO flushes but never
    commits. Engine failures are logged and re-raised as PersistenceError;
    argument and search errors propagate unchanged.
    """

    def __init__(
        self,
        session: Session,
        metadata: MetadataRegistry | None = None,
        translator: QueryTranslator | None = None,
    ) -> None:
        if session is None:
            raise ValueError("Session cannot be None")

        self.session: Session = session
        self.metadata: MetadataRegistry = metadata or default_registry
        self.translator: QueryTranslator = translator or QueryTranslator(self.metadata)
        logger.debug(f"Initialized {self.__class__.__name__}")

    # ---- lookup ------------------------------------------------------------

    def find(self, entity_class: type, id: Any) -> Any | None:
        if id is None:
            raise NullArgument("Id must not be None")
        self.metadata.get(entity_class)
        try:
            return self.session.get(entity_class, id)
        except SQLAlchemyError as e:
            logger.error(f"Error getting {entity_class.__name__} by id {id}: {e}")
            raise PersistenceError(f"Failed to get entity: {e}") from e

    def find_by_ids(self, entity_class: type, ids: Iterable[Any]) -> list[Any | None]:
        """Entities for `ids`, positionally aligned; missing rows come back as None."""
        meta = self.metadata.get(entity_class)
        ids = list(ids)
        if any(id is None for id in ids):
            raise NullArgument("Ids must not contain None")
        if not ids:
            return []

        try:
            if len(meta.id_properties) > 1:
                return [self.session.get(entity_class, id) for id in ids]

            pk = getattr(entity_class, meta.id_property)
            stmt = select(entity_class).where(pk.in_(list(dict.fromkeys(ids))))
            found = {meta.get_id(e): e for e in self.session.execute(stmt).scalars().all()}
            return [found.get(id) for id in ids]
        except SQLAlchemyError as e:
            logger.error(f"Error getting {entity_class.__name__} by ids: {e}")
            raise PersistenceError(f"Failed to get entities: {e}") from e

    def find_all(self, entity_class: type) -> list[Any]:
        return self.search(Search(entity_class))

    # ---- save / remove -----------------------------------------------------

    def save(self, entity: Any) -> bool:
        """
        Insert or update `entity`.

        Returns:
            True if a new row was inserted, False if an existing row was
            updated (or the entity was already persistent in this session).
        """
        if entity is None:
            raise NullArgument("Entity must not be None")
        if isinstance(entity, Reference):
            entity = entity.resolve()

        meta = self.metadata.for_instance(entity)
        name = type(entity).__name__
        state = sa_inspect(entity)

        try:
            if state.session is self.session and state.persistent:
                return False
            if state.session is self.session and state.pending:
                # Added earlier, e.g. through a save-update cascade, but not yet inserted
                self.session.flush()
                logger.debug(f"Inserted pending {name} with id {meta.get_id(entity)}")
                return True

            if state.deleted or state.was_deleted:
                make_transient(entity)

            id = meta.get_id(entity)
            if id is None or not self._exists(meta, id):
                self.session.add(entity)
                self.session.flush()
                logger.debug(f"Inserted {name} with id {meta.get_id(entity)}")
                return True

            self._reattach(entity, meta, id)
            logger.debug(f"Updated {name} with id {id}")
            return False
        except SQLAlchemyError as e:
            logger.error(f"Error saving {name}: {e}")
            raise PersistenceError(f"Failed to save entity: {e}") from e

    def save_all(self, entities: Iterable[Any]) -> list[bool]:
        return [self.save(entity) for entity in entities]

    def remove(self, entity: Any) -> bool:
        """Delete the row `entity` stands for. Returns False if there was none."""
        if entity is None:
            raise NullArgument("Entity must not be None")
        if isinstance(entity, Reference):
            return self.remove_by_id(entity.entity_class, entity.id)

        id = self.metadata.for_instance(entity).get_id(entity)
        if id is None:
            return False
        return self.remove_by_id(type(entity), id)

    def remove_all(self, entities: Iterable[Any]) -> list[bool]:
        return [self.remove(entity) for entity in entities]

    def remove_by_id(self, entity_class: type, id: Any) -> bool:
        if id is None:
            raise NullArgument("Id must not be None")
        self.metadata.get(entity_class)

        try:
            instance = self.session.get(entity_class, id)
            if instance is None:
                logger.debug(f"{entity_class.__name__} with id {id} not found for deletion")
                return False

            self.session.delete(instance)
            self.session.flush()
            logger.debug(f"Deleted {entity_class.__name__} with id {id}")
            return True
        except SQLAlchemyError as e:
            logger.error(f"Error deleting {entity_class.__name__} with id {id}: {e}")
            raise PersistenceError(f"Failed to delete entity: {e}") from e

    def remove_by_ids(self, entity_class: type, ids: Iterable[Any]) -> list[bool]:
        return [self.remove_by_id(entity_class, id) for id in ids]

    # ---- search ------------------------------------------------------------

    def search(self, search: Search) -> list[Any]:
        translated = self.translator.translate(search)
        try:
            return translated.shape(self.session.execute(translated.statement))
        except SQLAlchemyError as e:
            logger.error(f"Error executing {search!r}: {e}")
            raise PersistenceError(f"Failed to execute search: {e}") from e

    def count(self, search: Search) -> int:
        stmt = self.translator.translate_count(search)
        try:
            return self.session.execute(stmt).scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Error counting {search!r}: {e}")
            raise PersistenceError(f"Failed to count search results: {e}") from e

    def search_and_count(self, search: Search) -> SearchResult:
        """
        Page of results plus the number of rows matching without paging.

        The count query is skipped when the search is not paged and no
        results limit applies, since the page then already holds every row.
        """
        translated = self.translator.translate(search)
        try:
            rows = translated.shape(self.session.execute(translated.statement))
            if not search.is_paged() and not self.translator.max_results_limit:
                total = len(rows)
            else:
                total = self.session.execute(translated.count_statement).scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Error executing {search!r}: {e}")
            raise PersistenceError(f"Failed to execute search: {e}") from e
        return SearchResult(result=rows, total_count=total)

    def search_unique(self, search: Search) -> Any | None:
        translated = self.translator.translate(search)
        stmt = translated.statement
        if not search.is_paged():
            # Two rows are enough to tell a unique result from a non-unique one
            stmt = stmt.limit(2)
        try:
            rows = translated.shape(self.session.execute(stmt))
        except SQLAlchemyError as e:
            logger.error(f"Error executing {search!r}: {e}")
            raise PersistenceError(f"Failed to execute search: {e}") from e

        if not rows:
            return None
        if len(rows) > 1:
            total = len(rows) if search.is_paged() else self.count(search)
            raise NonUniqueResult(search.search_class, total)
        return rows[0]

    def get_filter_from_example(self, example: Any, options: ExampleOptions | None = None) -> Filter:
        return get_filter_from_example(example, options, self.metadata)

    # ---- references and session state --------------------------------------

    def get_reference(self, entity_class: type, id: Any) -> Reference:
        """
        Handle to the entity with `id` that does not hit the database.

        If this session already manages the entity the handle is resolved
        immediately; otherwise the row is loaded on first use.
        """
        if id is None:
            raise NullArgument("Id must not be None")
        self.metadata.get(entity_class)

        existing = self.session.identity_map.get(identity_key(entity_class, id))
        return Reference(self.session, entity_class, id, entity=existing)

    def get_references(self, entity_class: type, ids: Iterable[Any]) -> list[Reference]:
        return [self.get_reference(entity_class, id) for id in ids]

    def refresh(self, *entities: Any) -> None:
        for entity in entities:
            if entity is None:
                raise NullArgument("Entity must not be None")
            if isinstance(entity, Reference):
                entity = entity.resolve()
            try:
                self.session.refresh(entity)
            except SQLAlchemyError as e:
                logger.error(f"Error refreshing {type(entity).__name__}: {e}")
                raise PersistenceError(f"Failed to refresh entity: {e}") from e

    def is_attached(self, entity: Any) -> bool:
        if entity is None:
            raise NullArgument("Entity must not be None")
        if isinstance(entity, Reference):
            if not entity.is_resolved():
                return entity.is_bound()
            entity = entity.resolve()
        return entity in self.session

    def flush(self) -> None:
        try:
            self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Error flushing session: {e}")
            raise PersistenceError(f"Failed to flush session: {e}") from e

    # ---- helpers -----------------------------------------------------------

    def _exists(self, meta: EntityMetadata, id: Any) -> bool:
        cls = meta.entity_class
        stmt = select(func.count()).select_from(cls).where(meta.id_criterion(cls, id))
        return self.session.execute(stmt).scalar_one() > 0

    def _reattach(self, entity: Any, meta: EntityMetadata, id: Any) -> None:
        """Make a detached or hand-built copy of an existing row the managed instance."""
        state = sa_inspect(entity)

        managed = self.session.identity_map.get(identity_key(type(entity), id))
        if managed is not None and managed is not entity:
            # Another instance already represents this row in the session
            self.session.merge(entity)
            self.session.flush()
            return

        if state.transient:
            make_transient_to_detached(entity)
            self.session.add(entity)
            # Values set on the copy become the committed state; mark them dirty so they are written
            for attr in meta.mapper.column_attrs:
                if attr.key not in meta.id_properties and attr.key in state.dict:
                    flag_modified(entity, attr.key)
            for rel in meta.mapper.relationships:
                if not rel.uselist and rel.key in state.dict:
                    flag_modified(entity, rel.key)
        else:
            self.session.add(entity)
        self.session.flush()
