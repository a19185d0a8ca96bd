"""Entity-typed DAO support.

Parameterize with the mapped entity class::

    class CustomerDao(FlaskEntityDaoSupport[Customer]):
        def find_by_email(self, email: str) -> Customer | None:
            return self.find_by_property("email", email)

and the generic CRUD, batch and property-query operations work on that
entity without further configuration.
"""

import logging
from typing import Any, ClassVar, Sequence, TypeVar, get_args, get_origin

from sqlalchemy import Select, delete, select
from sqlalchemy import inspect as sa_inspect

from daosupport.config.settings import get_setting
from daosupport.exceptions import DaoArgumentError, EntityResolutionError
from daosupport.repositories.base import BaseSuperDao
from daosupport.repositories.orm_support import AbstractDaoSupport

logger = logging.getLogger(__name__)

E = TypeVar("E")


class AbstractEntityDaoSupport(AbstractDaoSupport, BaseSuperDao[E]):
    """ORM DAO bound to one entity class.

    The entity class is taken from the generic parameter of the subclass,
    or from an explicit ``entity_class`` class attribute.
    """

    entity_class: ClassVar[type | None] = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if cls.__dict__.get("entity_class") is not None:
            return
        for base in cls.__dict__.get("__orig_bases__", ()):
            origin = get_origin(base)
            if not (isinstance(origin, type) and issubclass(origin, AbstractEntityDaoSupport)):
                continue
            args = get_args(base)
            if args and not isinstance(args[0], TypeVar):
                cls.entity_class = args[0]
                return

    def __init__(self):
        if self.entity_class is None:
            raise EntityResolutionError(type(self))

    @property
    def find_all_statement(self) -> Select:
        """``select(entity_class)``, the base of every property query."""
        return select(self.entity_class)

    @property
    def pk_name(self) -> str:
        """Attribute name of the entity's (first) primary key column."""
        mapper = sa_inspect(self.entity_class)
        return mapper.get_property_by_column(mapper.primary_key[0]).key

    def _column(self, field_name: str):
        if field_name not in sa_inspect(self.entity_class).attrs:
            raise DaoArgumentError(
                f"{self.entity_class.__name__} has no property {field_name!r}"
            )
        return getattr(self.entity_class, field_name)

    # ------------------------------------------------------------------
    # Batch writes
    # ------------------------------------------------------------------

    def save_batch(self, entities: Sequence[E]) -> None:
        self.save_by_batch(entities)

    def update_batch(self, entities: Sequence[E]) -> None:
        self.update_by_batch(entities)

    def delete_batch(self, entities: Sequence[E]) -> None:
        self.delete_by_batch(entities)

    def evict(self, *entities: E) -> None:
        self.evict_batch(list(entities))

    def evict_batch(self, entities: Sequence[E]) -> None:
        self.evict_by_batch(entities)

    # ------------------------------------------------------------------
    # Deletes by key or property
    # ------------------------------------------------------------------

    def delete_by_id(self, *ids) -> int:
        """Delete entities by primary key.

        Keys are sent as ``IN (...)`` lists of at most
        ``DAO_DELETE_CHUNK_SIZE`` elements per statement.

        Returns:
            Number of rows deleted.
        """
        if not ids:
            return 0
        chunk_size = get_setting("DAO_DELETE_CHUNK_SIZE")
        pk = getattr(self.entity_class, self.pk_name)
        deleted = 0
        for offset in range(0, len(ids), chunk_size):
            chunk = list(ids[offset:offset + chunk_size])
            deleted += self.exec_statement(delete(self.entity_class).where(pk.in_(chunk)))
        logger.info("Deleted %s %s rows by id", deleted, self.entity_class.__name__)
        return deleted

    def delete_batch_by_pk_ids(self, ids: Sequence) -> int:
        return self.delete_by_id(*ids)

    def delete_batch_by_pk_id(self, entities: Sequence[E]) -> int:
        """Delete entities by the primary key read from each of them."""
        if not entities:
            return 0
        pk_name = self.pk_name
        ids = []
        for entity in entities:
            if not hasattr(entity, pk_name):
                raise DaoArgumentError(
                    f"{type(entity).__name__} has no primary key attribute {pk_name!r}"
                )
            ids.append(getattr(entity, pk_name))
        return self.delete_batch_by_pk_ids(ids)

    def delete_by_property(self, field_name: str, value) -> int:
        """Delete every entity whose ``field_name`` equals ``value``."""
        if not field_name or not field_name.strip():
            return 0
        column = self._column(field_name.strip())
        return self.exec_statement(delete(self.entity_class).where(column == value))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_by_id(self, entity_id) -> E | None:
        return self.get_by_id(self.entity_class, entity_id)

    def find_all(self) -> list[E]:
        return self.get_list_result(self.find_all_statement)

    def find_by_property(self, field_name: str, value) -> E | None:
        """Return the first entity whose ``field_name`` equals ``value``."""
        return self.find_by_properties({field_name: value})

    def find_by_properties(self, properties: dict[str, Any]) -> E | None:
        """Return the first entity matching every name/value pair."""
        statement = self.find_all_statement.where(*self.fill_where_by_properties(properties))
        return self.get_unique_result(statement)

    def find_list_by_property(self, field_name: str, value) -> list[E]:
        return self.find_list_by_properties({field_name: value})

    def find_list_by_properties(self, properties: dict[str, Any]) -> list[E]:
        """Return every entity matching every name/value pair."""
        statement = self.find_all_statement.where(*self.fill_where_by_properties(properties))
        return self.get_list_result(statement)

    def find_list_like_property(self, field_name: str, value: str) -> list[E]:
        """Return every entity whose ``field_name`` matches the LIKE pattern ``value``."""
        statement = self.find_all_statement.where(
            *self.fill_where_by_properties({field_name: value}, is_like=True)
        )
        return self.get_list_result(statement)

    def fill_where_by_properties(self, properties: dict[str, Any] | None, is_like: bool = False) -> list:
        """Build AND-ed conditions, one per property, using ``=`` or ``LIKE``."""
        if not properties:
            return []
        conditions = []
        for field_name, value in properties.items():
            column = self._column(field_name)
            conditions.append(column.like(value) if is_like else column == value)
        return conditions
