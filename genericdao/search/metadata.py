"""
Per-entity schema descriptors.

An EntityMetadata is built once per mapped class from the SQLAlchemy mapper
and lists every property a Search may reference: its kind (column,
single-valued association, collection), its Python type and, for
associations, the target class. The translator and the example-filter
derivation read these descriptors instead of inspecting instances.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any

from sqlalchemy import and_
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.orm import Mapper, RelationshipDirection

from genericdao.common.enums import PropertyKind
from genericdao.common.exceptions import InvalidSearch, NullArgument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PropertyInfo:
    name: str
    kind: PropertyKind
    python_type: type | None = None
    target_class: type | None = None
    # Local foreign-key property of a many-to-one, e.g. "father_id" for "father"
    fk_property: str | None = None
    # Name of the column property a many-to-one's foreign key maps onto in the target
    target_id_property: str | None = None

    def is_column(self) -> bool:
        return self.kind is PropertyKind.COLUMN

    def is_association(self) -> bool:
        return self.kind is not PropertyKind.COLUMN


class EntityMetadata:
    def __init__(self, entity_class: type) -> None:
        try:
            mapper: Mapper = sa_inspect(entity_class)
        except NoInspectionAvailable:
            raise InvalidSearch(f"{entity_class!r} is not a mapped entity class") from None
        if not isinstance(mapper, Mapper):
            raise InvalidSearch(f"{entity_class!r} is not a mapped entity class")

        self.entity_class = entity_class
        self.mapper = mapper
        self.id_properties: tuple[str, ...] = tuple(
            mapper.get_property_by_column(col).key for col in mapper.primary_key
        )
        self.properties: dict[str, PropertyInfo] = {}
        self.foreign_keys: set[str] = set()

        for attr in mapper.column_attrs:
            self.properties[attr.key] = PropertyInfo(
                name=attr.key,
                kind=PropertyKind.COLUMN,
                python_type=_python_type(attr.columns[0]),
            )

        for rel in mapper.relationships:
            target = rel.mapper.class_
            if rel.uselist:
                self.properties[rel.key] = PropertyInfo(
                    name=rel.key, kind=PropertyKind.COLLECTION, python_type=list, target_class=target
                )
                continue

            fk_property = target_id_property = None
            pairs = rel.local_remote_pairs or []
            if rel.direction is RelationshipDirection.MANYTOONE and len(pairs) == 1:
                local_col, remote_col = pairs[0]
                local_prop = mapper.get_property_by_column(local_col)
                remote_prop = rel.mapper.get_property_by_column(remote_col)
                fk_property = local_prop.key
                target_id_property = remote_prop.key
                self.foreign_keys.add(fk_property)

            self.properties[rel.key] = PropertyInfo(
                name=rel.key,
                kind=PropertyKind.ENTITY,
                python_type=target,
                target_class=target,
                fk_property=fk_property,
                target_id_property=target_id_property,
            )

        logger.debug(
            f"Built metadata for {entity_class.__name__}: "
            f"id={self.id_properties}, properties={sorted(self.properties)}"
        )

    @property
    def name(self) -> str:
        return f"{self.entity_class.__module__}.{self.entity_class.__qualname__}"

    @property
    def id_property(self) -> str:
        if len(self.id_properties) != 1:
            raise InvalidSearch(f"{self.entity_class.__name__} has a composite identifier")
        return self.id_properties[0]

    def has_property(self, name: str) -> bool:
        return name in self.properties

    def get_property(self, name: str) -> PropertyInfo:
        try:
            return self.properties[name]
        except KeyError:
            raise InvalidSearch(
                f"Could not find property '{name}' on entity {self.entity_class.__name__}"
            ) from None

    def get_id(self, entity: Any) -> Any:
        """Identifier of `entity`: a scalar, a tuple for composite keys, or None if unset."""
        values = tuple(getattr(entity, key) for key in self.id_properties)
        if any(v is None for v in values):
            return None
        return values[0] if len(values) == 1 else values

    def id_criterion(self, owner: Any, id: Any):
        """SQL criterion matching `id` against the identifier columns of `owner`."""
        if len(self.id_properties) == 1:
            return getattr(owner, self.id_properties[0]) == id
        if not isinstance(id, tuple) or len(id) != len(self.id_properties):
            raise NullArgument(f"{self.entity_class.__name__} requires a {len(self.id_properties)}-tuple id")
        return and_(*(getattr(owner, key) == value for key, value in zip(self.id_properties, id)))


class MetadataRegistry:
    """Cache of EntityMetadata, one per entity class."""

    def __init__(self) -> None:
        self._cache: dict[type, EntityMetadata] = {}
        self._lock = threading.Lock()

    def get(self, entity_class: type) -> EntityMetadata:
        if entity_class is None:
            raise NullArgument("Entity class must not be None")
        meta = self._cache.get(entity_class)
        if meta is None:
            with self._lock:
                meta = self._cache.get(entity_class)
                if meta is None:
                    meta = EntityMetadata(entity_class)
                    self._cache[entity_class] = meta
        return meta

    def for_instance(self, entity: Any) -> EntityMetadata:
        if entity is None:
            raise NullArgument("Entity must not be None")
        return self.get(type(entity))

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


def _python_type(column) -> type | None:
    try:
        return column.type.python_type
    except (NotImplementedError, AttributeError):
        return None


default_registry = MetadataRegistry()
