"""
Search Package

- filter: Filter, Field, Sort and Fetch value types
- search: the Search specification and its builder API
- example: ExampleOptions and query-by-example filter derivation
- metadata: per-entity schema descriptors
- translator: Search → SQLAlchemy statements
- result: SearchResult (rows + total count)
"""

from .example import ExampleOptions, get_filter_from_example
from .filter import Fetch, Field, Filter, Sort
from .metadata import EntityMetadata, MetadataRegistry, PropertyInfo, default_registry
from .result import SearchResult
from .search import Search
from .translator import QueryTranslator, TranslatedSearch

__all__ = [
    "Search",
    "Filter",
    "Field",
    "Sort",
    "Fetch",
    "ExampleOptions",
    "get_filter_from_example",
    "EntityMetadata",
    "MetadataRegistry",
    "PropertyInfo",
    "default_registry",
    "SearchResult",
    "QueryTranslator",
    "TranslatedSearch",
]
