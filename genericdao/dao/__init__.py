"""
DAO Package

- general_dao: GeneralDAO, the class-agnostic persistence API
- generic_dao: GenericDAO[T], a GeneralDAO bound to one entity class
- dispatcher: DAODispatcher, per-class routing to registered DAOs
- reference: Reference, lazily resolved entity handles
"""

from .dispatcher import DAODispatcher
from .general_dao import GeneralDAO
from .generic_dao import GenericDAO
from .reference import Reference

__all__ = [
    "GeneralDAO",
    "GenericDAO",
    "DAODispatcher",
    "Reference",
]
