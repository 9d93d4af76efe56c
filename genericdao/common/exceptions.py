"""
Exceptions raised by the DAO and search layers.

Every error surfaces to the caller immediately; nothing here is retried.
"""


class DAOException(Exception):
    """Base exception for DAO operations."""

    pass


class NullArgument(DAOException, ValueError):
    """Raised when a Search, its class, an entity or an id is missing."""

    pass


class InvalidSearch(DAOException, ValueError):
    """Raised when a Search cannot be translated into a query."""

    pass


class NonUniqueResult(DAOException):
    """Raised when search_unique() matches more than one row."""

    def __init__(self, search_class: type, count: int):
        self.search_class = search_class
        self.count = count
        super().__init__(f"Expected at most one {search_class.__name__}, found {count}")


class EntityNotFound(DAOException, LookupError):
    """Raised when a reference is resolved against a missing row."""

    def __init__(self, entity_class: type, id):
        self.entity_class = entity_class
        self.id = id
        super().__init__(f"No row with the given identifier exists: [{entity_class.__name__}#{id}]")


class DAODispatcherException(DAOException):
    """Raised when the dispatcher is asked for an operation it cannot route."""

    pass


class AttachmentError(DAOException):
    """Raised when a reference is used outside the unit-of-work that created it."""

    pass


class PersistenceError(DAOException):
    """Wraps a failure reported by the persistence engine."""

    pass
