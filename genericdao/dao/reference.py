"""
Lazily resolved entity handles.

A Reference is either resolved (it holds the entity) or unresolved (it holds
the class, the id and the unit-of-work that created it). Creating one never
touches the database; the row is loaded by `resolve()`, which attribute
access on the handle calls implicitly:

    ref = dao.get_reference(Person, 42)
    ref.first_name          # loads Person 42, or raises EntityNotFound

An unresolved Reference is valid only while the transaction that created it
is still the session's active transaction. Resolving it after a commit,
rollback or close raises AttachmentError.
"""

import logging
from typing import Any, Generic, TypeVar

from sqlalchemy.orm import Session, SessionTransaction

from genericdao.common.exceptions import AttachmentError, EntityNotFound

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Reference(Generic[T]):
    def __init__(self, session: Session, entity_class: type[T], id: Any, entity: T | None = None) -> None:
        transaction: SessionTransaction | None = None
        if entity is None:
            # Bind to the current unit-of-work, beginning it if the session has none yet
            session.connection()
            transaction = session.get_transaction()

        object.__setattr__(self, "_session", session)
        object.__setattr__(self, "_entity_class", entity_class)
        object.__setattr__(self, "_id", id)
        object.__setattr__(self, "_entity", entity)
        object.__setattr__(self, "_transaction", transaction)

    @property
    def id(self) -> Any:
        return self._id

    @property
    def entity_class(self) -> type[T]:
        return self._entity_class

    def is_resolved(self) -> bool:
        return self._entity is not None

    def is_bound(self) -> bool:
        """True while the unit-of-work that created this reference is still active."""
        if self._transaction is None:
            return True
        return self._transaction.is_active and self._session.get_transaction() is self._transaction

    def resolve(self) -> T:
        entity = self._entity
        if entity is not None:
            return entity

        if not self.is_bound():
            raise AttachmentError(
                f"Reference to {self._entity_class.__name__}#{self._id} used outside the unit-of-work that created it"
            )

        entity = self._session.get(self._entity_class, self._id)
        if entity is None:
            raise EntityNotFound(self._entity_class, self._id)

        logger.debug(f"Resolved reference {self._entity_class.__name__}#{self._id}")
        object.__setattr__(self, "_entity", entity)
        return entity

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self.resolve(), name)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(self.resolve(), name, value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Reference):
            return self._entity_class is other._entity_class and self._id == other._id
        if self._entity is not None and other is self._entity:
            return True
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self._entity_class, self._id))

    def __repr__(self) -> str:
        state = "resolved" if self.is_resolved() else "unresolved"
        return f"<Reference {self._entity_class.__name__}#{self._id} {state}>"
