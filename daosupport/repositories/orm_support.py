"""ORM DAO support on top of a SQLAlchemy ``Session``.

Subclass and implement ``get_session``. Plain-SQL helpers inherited from
``AbstractSqlDaoSupport`` run on the session's connection, so ORM and SQL
work share one transaction; committing is left to the caller.

A "statement" here is either a SQLAlchemy executable (``select``,
``update``, ``delete``) or a SQL string with ``:name`` placeholders.
"""

import logging
from abc import abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Sequence

from sqlalchemy import Connection, Engine, Result, Select, TextClause, select, text
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Session
from sqlalchemy.sql.expression import Executable, GenerativeSelect, SelectBase

from daosupport.config.settings import get_setting
from daosupport.exceptions import DaoArgumentError
from daosupport.repositories.sql_support import AbstractSqlDaoSupport
from daosupport.schemas.page import Page
from daosupport.utils.pagination import (
    build_count_sql,
    build_count_statement,
    check_start,
    page_numbers,
    paginate_sql,
)
from daosupport.utils.sql_utils import bind_text

logger = logging.getLogger(__name__)

Statement = Executable | str


def _is_mapped(clazz: type | None) -> bool:
    return clazz is not None and sa_inspect(clazz, raiseerr=False) is not None


def _unwrap(row):
    """Single-column rows become their value; wider rows stay tuples."""
    return row[0] if len(row) == 1 else row


def _selects_entities(statement) -> bool:
    """True when a select returns whole ORM entities rather than columns."""
    if not isinstance(statement, Select):
        return False
    return any(
        desc.get("entity") is not None and desc["expr"] is desc["entity"]
        for desc in statement.column_descriptions
    )


def _retext(clause: TextClause, sql: str) -> TextClause:
    """Rebuild ``clause`` around ``sql``, keeping the bind parameters it still uses."""
    rebuilt = text(sql)
    return rebuilt.bindparams(
        *(bind for key, bind in clause._bindparams.items() if key in rebuilt._bindparams)
    )


class AbstractDaoSupport(AbstractSqlDaoSupport):
    """Base class for DAOs working through an ORM session."""

    @abstractmethod
    def get_session(self) -> Session:
        """Return the session entities are loaded into and saved through."""

    def get_engine(self) -> Engine:
        return self.get_session().get_bind()

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        yield self.get_session().connection()

    def commit(self) -> None:
        """Commit the current transaction."""
        self.get_session().commit()

    def rollback(self) -> None:
        """Roll back the current transaction."""
        self.get_session().rollback()

    # ------------------------------------------------------------------
    # Native SQL
    # ------------------------------------------------------------------

    def get_page_list_result_by_sql(
        self, sql: str | None, start: int, limit: int, params: dict[str, Any] | None = None,
    ) -> list:
        """Run native SQL through the session, windowed unless ``limit == 0``."""
        if sql is None:
            return []
        check_start(start)
        statement, bound = self.fill_parameters(paginate_sql(sql, start, limit), params)
        return [_unwrap(row) for row in self.get_session().execute(statement, bound)]

    # ------------------------------------------------------------------
    # Single-entity writes
    # ------------------------------------------------------------------

    def save(self, pojo) -> None:
        """Add a new entity and flush to obtain its id."""
        if pojo is None:
            return
        session = self.get_session()
        session.add(pojo)
        session.flush()

    def update(self, pojo) -> None:
        """Write the state of a persistent, detached or transient entity."""
        if pojo is None:
            return
        session = self.get_session()
        session.merge(pojo)
        session.flush()

    def delete(self, pojo) -> None:
        """Delete an entity, re-attaching it first when detached."""
        if pojo is None:
            return
        session = self.get_session()
        session.delete(pojo if pojo in session else session.merge(pojo))
        session.flush()

    # ------------------------------------------------------------------
    # Batch writes
    # ------------------------------------------------------------------

    def _in_batches(self, pojos: Sequence | None, action: Callable[[Session, Any], Any], label: str) -> None:
        """Apply ``action`` to every pojo, flushing and clearing the session periodically."""
        if not pojos:
            return
        session = self.get_session()
        interval = get_setting("DAO_FLUSH_INTERVAL")
        for i, pojo in enumerate(pojos, start=1):
            action(session, pojo)
            if i % interval == 0:
                session.flush()
                session.expunge_all()
        session.flush()
        session.expunge_all()
        logger.info("%s %s entities in batches of %s", label, len(pojos), interval)

    def save_by_batch(self, pojos: Sequence | None) -> None:
        """Save entities one by one.

        Slow for large volumes; ``save_by_auto_named`` or ``exec_batch_sql``
        issue far fewer round trips.
        """
        self._in_batches(pojos, lambda session, pojo: session.add(pojo), "Saved")

    def update_by_batch(self, pojos: Sequence | None) -> None:
        """Update entities one by one. Slow for large volumes."""
        self._in_batches(pojos, lambda session, pojo: session.merge(pojo), "Updated")

    def delete_by_batch(self, pojos: Sequence | None) -> None:
        """Delete entities one by one. Slow for large volumes."""

        def _delete(session: Session, pojo) -> None:
            session.delete(pojo if pojo in session else session.merge(pojo))

        self._in_batches(pojos, _delete, "Deleted")

    def evict(self, *pojos) -> None:
        """Detach entities from the session."""
        self.evict_by_batch(list(pojos))

    def evict_by_batch(self, pojos: Sequence | None) -> None:
        def _evict(session: Session, pojo) -> None:
            if pojo in session:
                session.expunge(pojo)

        self._in_batches(pojos, _evict, "Evicted")

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def fill_parameters(
        self, statement: Statement, params: dict[str, Any] | None,
    ) -> tuple[Executable, dict[str, Any]]:
        """Prepare ``statement`` for execution with ``params``.

        Strings become ``text()`` clauses. For textual statements, list,
        tuple and set values are bound as expanding parameters; constructed
        statements must declare ``bindparam(..., expanding=True)`` themselves.
        """
        if isinstance(statement, (str, TextClause)):
            return bind_text(statement, params)
        bound = {
            key: list(value) if isinstance(value, (set, frozenset)) else value
            for key, value in (params or {}).items()
        }
        return statement, bound

    def _execute(self, statement: Statement, params: dict[str, Any] | None, clazz: type | None) -> Result:
        prepared, bound = self.fill_parameters(statement, params)
        entity_rows = _selects_entities(prepared)
        if isinstance(prepared, TextClause) and _is_mapped(clazz):
            prepared = select(clazz).from_statement(prepared)
            entity_rows = True
        result = self.get_session().execute(prepared, bound)
        # Joined eager loads of collections repeat the parent entity per child row.
        return result.unique() if entity_rows else result

    def _window(self, statement: Statement, start: int, limit: int) -> Statement:
        if isinstance(statement, GenerativeSelect):
            return statement.offset(start).limit(limit)
        if isinstance(statement, str):
            return paginate_sql(statement, start, limit)
        if isinstance(statement, TextClause):
            return _retext(statement, paginate_sql(statement.text, start, limit))
        raise DaoArgumentError(f"cannot page a {type(statement).__name__} statement")

    def exec_statement(self, statement: Statement | None, params: dict[str, Any] | None = None) -> int:
        """Execute an UPDATE/DELETE statement and return the affected row count."""
        if statement is None:
            return 0
        prepared, bound = self.fill_parameters(statement, params)
        result = self.get_session().execute(prepared, bound)
        logger.debug("Statement affected %s rows", result.rowcount)
        return result.rowcount

    def get_by_id(self, entity_class: type, entity_id):
        """Fetch a single entity by primary key."""
        return self.get_session().get(entity_class, entity_id)

    def get_unique_result(
        self, statement: Statement | None, params: dict[str, Any] | None = None, clazz: type | None = None,
    ):
        """Return the first result row, or None.

        Single-column rows are unwrapped, so a ``select(User)`` yields a
        ``User`` and a count query yields an int.
        """
        if statement is None:
            return None
        if isinstance(statement, GenerativeSelect):
            statement = statement.limit(1)
        row = self._execute(statement, params, clazz).first()
        return None if row is None else _unwrap(row)

    def get_list_result(
        self, statement: Statement | None, params: dict[str, Any] | None = None, clazz: type | None = None,
    ) -> list:
        return self.get_page_list_result(statement, 0, 0, params, clazz)

    def get_page_list_result(
        self,
        statement: Statement | None,
        start: int,
        limit: int,
        params: dict[str, Any] | None = None,
        clazz: type | None = None,
    ) -> list:
        """Return rows ``start`` to ``start + limit``; ``limit == 0`` returns all.

        Selects (plain or compound), ``text()`` clauses and SQL strings can be
        windowed. Other executables raise ``DaoArgumentError``.
        """
        if statement is None:
            return []
        check_start(start)
        if limit != 0:
            statement = self._window(statement, start, limit)
        return [_unwrap(row) for row in self._execute(statement, params, clazz)]

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    def get_page_result(
        self,
        statement: Statement | None,
        start: int,
        limit: int,
        params: dict[str, Any] | None = None,
        clazz: type | None = None,
    ) -> Page:
        """Return one page of results plus paging totals."""
        result = self.get_page_result_map(statement, start, limit, params, clazz)
        if not result:
            return Page()
        return Page.from_result_map(result)

    def get_page_result_map(
        self,
        statement: Statement | None,
        start: int,
        limit: int,
        params: dict[str, Any] | None = None,
        clazz: type | None = None,
    ) -> dict[str, Any]:
        """Dict form of ``get_page_result``, keyed by the ``Page`` constants.

        For SQL strings and ``text()`` clauses the COUNT query is derived
        textually, which does not support grouped queries; selects built with
        SQLAlchemy, including unions, have no such limit.
        """
        if statement is None:
            return {}
        check_start(start)
        result: dict[str, Any] = {}
        data_list = self.get_page_list_result(statement, start, limit, params, clazz)
        self.fill_page_info(result, start, limit, statement, params)
        result[Page.DATA_LIST] = data_list
        return result

    def fill_page_info(
        self,
        result: dict[str, Any],
        start: int,
        limit: int,
        statement: Statement,
        params: dict[str, Any] | None = None,
    ) -> None:
        """Run one COUNT query for ``statement`` and store the page numbers in ``result``."""
        if isinstance(statement, SelectBase):
            count_statement = build_count_statement(statement)
        elif isinstance(statement, TextClause):
            count_statement = _retext(statement, build_count_sql(statement.text))
        elif isinstance(statement, str):
            count_statement = build_count_sql(statement)
        else:
            raise DaoArgumentError(f"cannot count a {type(statement).__name__} statement")
        prepared, bound = self.fill_parameters(count_statement, params)
        total_count = int(self.get_session().execute(prepared, bound).scalar() or 0)
        result.update(page_numbers(start, limit, total_count))
