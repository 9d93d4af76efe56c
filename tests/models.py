"""
Entities shared by the test suite.

Person has a self-referential many-to-one (`father`) and a one-to-many
collection (`pets`); Pet points back to its owner.
"""

from typing import Optional

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from genericdao.models import Base, CreatedAtMixin


class Person(Base):
    __tablename__ = "people"

    # Fields
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    father_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("people.id"), nullable=True)

    # Relationships
    father: Mapped[Optional["Person"]] = relationship("Person", remote_side=[id])
    pets: Mapped[list["Pet"]] = relationship("Pet", back_populates="owner")


class Pet(Base, CreatedAtMixin):
    __tablename__ = "pets"

    # Fields
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    species: Mapped[str] = mapped_column(String(20), nullable=False)
    legs: Mapped[int] = mapped_column(Integer, default=4, nullable=False)
    owner_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("people.id"), nullable=True)

    # Relationships
    owner: Mapped[Optional["Person"]] = relationship("Person", back_populates="pets")


def copy_person(person: Person) -> Person:
    """Detached look-alike of `person` carrying the same id and column values."""
    return Person(
        id=person.id,
        first_name=person.first_name,
        last_name=person.last_name,
        age=person.age,
    )
