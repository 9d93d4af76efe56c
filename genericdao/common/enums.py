from enum import Enum


class FilterOperator(str, Enum):
    EQUAL = "EQUAL"
    NOT_EQUAL = "NOT_EQUAL"
    LESS_THAN = "LESS_THAN"
    GREATER_THAN = "GREATER_THAN"
    LESS_OR_EQUAL = "LESS_OR_EQUAL"
    GREATER_OR_EQUAL = "GREATER_OR_EQUAL"
    LIKE = "LIKE"
    ILIKE = "ILIKE"  # case-insensitive LIKE
    IN = "IN"
    NOT_IN = "NOT_IN"
    IS_NULL = "IS_NULL"
    IS_NOT_NULL = "IS_NOT_NULL"
    EMPTY = "EMPTY"  # null/empty string or empty collection
    NOT_EMPTY = "NOT_EMPTY"
    AND = "AND"
    OR = "OR"
    NOT = "NOT"
    SOME = "SOME"  # at least one collection element matches
    ALL = "ALL"  # every collection element matches
    NONE = "NONE"  # no collection element matches


class FieldOperator(str, Enum):
    PROPERTY = "PROPERTY"
    COUNT = "COUNT"
    COUNT_DISTINCT = "COUNT_DISTINCT"
    MAX = "MAX"
    MIN = "MIN"
    SUM = "SUM"
    AVG = "AVG"


class ResultMode(str, Enum):
    ENTITY = "ENTITY"
    SINGLE_FIELD = "SINGLE_FIELD"
    FIELD_ARRAY = "FIELD_ARRAY"
    FIELD_MAP = "FIELD_MAP"
    ENTITY_OR_SINGLE = "ENTITY_OR_SINGLE"


class LikeMode(str, Enum):
    EXACT = "EXACT"
    START = "START"
    END = "END"
    ANYWHERE = "ANYWHERE"


class PropertyKind(str, Enum):
    COLUMN = "COLUMN"
    ENTITY = "ENTITY"  # many-to-one / one-to-one association
    COLLECTION = "COLLECTION"
