"""
Common Module

- config: environment-driven settings (database, search limits)
- enums: operator and mode enumerations shared by search and dao
- exceptions: the DAO error taxonomy
"""

from .config import DB_CONFIG, SEARCH_CONFIG
from .enums import FieldOperator, FilterOperator, LikeMode, PropertyKind, ResultMode
from .exceptions import (
    AttachmentError,
    DAODispatcherException,
    DAOException,
    EntityNotFound,
    InvalidSearch,
    NonUniqueResult,
    NullArgument,
    PersistenceError,
)

__all__ = [
    "DB_CONFIG",
    "SEARCH_CONFIG",
    "FieldOperator",
    "FilterOperator",
    "LikeMode",
    "PropertyKind",
    "ResultMode",
    "DAOException",
    "NullArgument",
    "InvalidSearch",
    "NonUniqueResult",
    "EntityNotFound",
    "DAODispatcherException",
    "AttachmentError",
    "PersistenceError",
]
