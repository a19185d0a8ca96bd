"""Generic DAO interface for a single entity type.

Concrete DAOs normally get these operations by inheriting
``AbstractEntityDaoSupport``.
"""

from abc import ABC, abstractmethod
from typing import Generic, Sequence, TypeVar

E = TypeVar("E")


class BaseSuperDao(ABC, Generic[E]):
    """CRUD contract shared by every entity DAO."""

    @abstractmethod
    def save(self, entity: E) -> None:
        """Insert one entity."""

    @abstractmethod
    def update(self, entity: E) -> None:
        """Write the state of one entity."""

    @abstractmethod
    def delete(self, entity: E) -> None:
        """Delete one entity."""

    @abstractmethod
    def delete_by_id(self, *ids) -> None:
        """Delete every entity whose primary key is in ``ids``."""

    @abstractmethod
    def find_by_id(self, entity_id) -> E | None:
        """Fetch one entity by primary key."""

    @abstractmethod
    def find_all(self) -> list[E]:
        """Return every entity."""

    @abstractmethod
    def save_batch(self, entities: Sequence[E]) -> None:
        """Insert many entities."""

    @abstractmethod
    def update_batch(self, entities: Sequence[E]) -> None:
        """Write the state of many entities."""

    @abstractmethod
    def delete_batch(self, entities: Sequence[E]) -> None:
        """Delete many entities."""
