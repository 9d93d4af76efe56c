from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    def to_dict(self) -> dict[str, Any]:
        """Column values keyed by mapped attribute name."""
        mapper = self.__mapper__
        return {attr.key: getattr(self, attr.key) for attr in mapper.column_attrs}

    def __repr__(self) -> str:
        """
        Debug representation with the mapped columns,
        e.g. <Person id=1 first_name='Fred' ...>
        """
        cols = []
        for attr in self.__mapper__.column_attrs:
            # Avoid triggering loads of expired or deferred attributes
            if attr.key not in self.__dict__:
                continue

            val = self.__dict__[attr.key]
            if isinstance(val, datetime):
                val = val.isoformat()
            if isinstance(val, str) and len(val) > 20:
                val = val[:17] + "..."

            cols.append(f"{attr.key}={val!r}")

        return f"<{self.__class__.__name__} {' '.join(cols)}>"


class CreatedAtMixin:
    """Creation timestamp only (e.g. audit or history tables)."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), server_default=func.now(), nullable=False
    )
