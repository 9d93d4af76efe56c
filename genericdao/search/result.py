from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class SearchResult(BaseModel, Generic[T]):
    """
    Rows of one search together with the total number of matching rows.

    `total_count` ignores paging, so it can exceed `len(result)`.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    result: list[T] = Field(default_factory=list, description="Rows shaped per the search's result mode")
    total_count: int = Field(-1, description="Matching rows without paging (-1 when not counted)")


__all__ = ["SearchResult"]
