"""Plain-SQL DAO support.

Subclass and implement ``get_engine``. Every call runs in its own
transaction unless ``connect`` is overridden to join an outer one, which is
what ``AbstractDaoSupport`` does with its ORM session.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator, Sequence, TypeVar

from sqlalchemy import Connection, Engine

from daosupport.schemas.page import Page
from daosupport.utils import sql_utils
from daosupport.utils.row_mapper import RowMapper

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AbstractSqlDaoSupport(ABC):
    """Base class for DAOs that run SQL strings directly."""

    @abstractmethod
    def get_engine(self) -> Engine:
        """Return the engine statements are executed against."""

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Yield a connection; commit on success, roll back on error."""
        with self.get_engine().begin() as conn:
            yield conn

    # ------------------------------------------------------------------
    # Raw statements
    # ------------------------------------------------------------------

    def exec_batch_sql(self, *sql: str) -> list[int]:
        """Run several INSERT/UPDATE/DELETE statements in one transaction."""
        if not sql:
            return []
        with self.connect() as conn:
            counts = [sql_utils.execute_sql(conn, statement) for statement in sql]
        logger.debug("Executed batch of %s statements", len(counts))
        return counts

    def exec_sql(self, sql: str | None) -> int:
        """Run a single INSERT/UPDATE/DELETE statement."""
        if sql is None:
            return 0
        with self.connect() as conn:
            return sql_utils.execute_sql(conn, sql)

    def get_unique_result_by_sql(self, sql: str | None, params: dict[str, Any] | None = None) -> Any:
        """Return the first column of the first row, or None."""
        if sql is None:
            return None
        with self.connect() as conn:
            statement, bound = sql_utils.bind_text(sql, params)
            return conn.execute(statement, bound).scalar()

    def get_list_result_by_sql(self, sql: str | None, params: dict[str, Any] | None = None) -> list:
        """Return the first column of every row."""
        if sql is None:
            return []
        with self.connect() as conn:
            statement, bound = sql_utils.bind_text(sql, params)
            return list(conn.execute(statement, bound).scalars())

    # ------------------------------------------------------------------
    # Bean mapping
    # ------------------------------------------------------------------

    def save_by_auto_named(
        self,
        table_name: str | None,
        data_list: Sequence[Any],
        is_ignore: bool = False,
        auto_id: bool = False,
    ) -> int:
        """Insert objects with columns named after their snake_cased properties.

        Args:
            table_name: Target table. Defaults to the snake_cased class name.
            data_list: Objects of one class to insert.
            is_ignore: Skip rows that collide with an existing key.
            auto_id: Leave ``id`` out so the database generates it.
        """
        with self.connect() as conn:
            return sql_utils.save_by_auto_named(conn, table_name, data_list, is_ignore, auto_id)

    def find_object_unique(self, clazz: type[T], sql: str, params: dict[str, Any] | None = None) -> T | None:
        with self.connect() as conn:
            return sql_utils.find_object_unique(conn, clazz, sql, params)

    def find_object_list_by_class(self, clazz: type[T], sql: str, params: dict[str, Any] | None = None) -> list[T]:
        with self.connect() as conn:
            return sql_utils.find_object_list_by_class(conn, clazz, sql, params)

    def find_object_list_by_mapper(self, row_mapper: RowMapper, sql: str, params: dict[str, Any] | None = None) -> list:
        with self.connect() as conn:
            return sql_utils.find_object_list_by_mapper(conn, row_mapper, sql, params)

    def find_object_page_by_class(
        self, clazz: type[T], sql: str, start: int, limit: int, params: dict[str, Any] | None = None,
    ) -> Page:
        """Return one page of rows mapped onto ``clazz``.

        Grouped queries are not supported; the COUNT query is derived
        textually from ``sql``.
        """
        with self.connect() as conn:
            return sql_utils.find_object_page_by_class(conn, clazz, sql, start, limit, params)

    def find_object_page_by_mapper(
        self, row_mapper: RowMapper, sql: str, start: int, limit: int, params: dict[str, Any] | None = None,
    ) -> Page:
        with self.connect() as conn:
            return sql_utils.find_object_page_by_mapper(conn, row_mapper, sql, start, limit, params)
