"""
genericdao: a generic data-access layer over the SQLAlchemy ORM.

Queries are described with entity-agnostic Search objects and executed by a
GeneralDAO, a typed GenericDAO, or a DAODispatcher that routes each call to
the DAO registered for the entity's class.
"""

from .common.exceptions import (
    AttachmentError,
    DAODispatcherException,
    DAOException,
    EntityNotFound,
    InvalidSearch,
    NonUniqueResult,
    NullArgument,
    PersistenceError,
)
from .common.enums import FieldOperator, FilterOperator, LikeMode, ResultMode
from .dao import DAODispatcher, GeneralDAO, GenericDAO, Reference
from .search import (
    ExampleOptions,
    Fetch,
    Field,
    Filter,
    MetadataRegistry,
    QueryTranslator,
    Search,
    SearchResult,
    Sort,
    get_filter_from_example,
)

__version__ = "0.1.0"

__all__ = [
    # Search model
    "Search",
    "Filter",
    "Field",
    "Sort",
    "Fetch",
    "ExampleOptions",
    "get_filter_from_example",
    "FilterOperator",
    "FieldOperator",
    "ResultMode",
    "LikeMode",
    # Execution
    "QueryTranslator",
    "MetadataRegistry",
    "SearchResult",
    "GeneralDAO",
    "GenericDAO",
    "DAODispatcher",
    "Reference",
    # Exceptions
    "DAOException",
    "NullArgument",
    "InvalidSearch",
    "NonUniqueResult",
    "EntityNotFound",
    "DAODispatcherException",
    "AttachmentError",
    "PersistenceError",
]
