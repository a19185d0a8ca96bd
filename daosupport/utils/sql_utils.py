"""Plain-SQL helpers over a SQLAlchemy ``Connection``.

Statements are SQL strings with ``:name`` placeholders. Collection values
in ``params`` are bound as expanding parameters, so ``id in :ids`` with
``{"ids": [1, 2, 3]}`` renders one placeholder per element.
"""

import logging
from typing import Any, Sequence, TypeVar

from sqlalchemy import Connection, TextClause, bindparam, text

from daosupport.exceptions import DaoArgumentError
from daosupport.schemas.page import Page
from daosupport.utils.class2sql import class_to_save_sql, save_properties
from daosupport.utils.pagination import build_count_sql, check_start, paginate_sql
from daosupport.utils.row_mapper import BeanRowMapper, RowMapper

logger = logging.getLogger(__name__)

T = TypeVar("T")

_COLLECTION_TYPES = (list, tuple, set, frozenset)


def bind_text(
    sql: str | TextClause, params: dict[str, Any] | None = None,
) -> tuple[TextClause, dict[str, Any]]:
    """Build a ``text()`` clause and the parameter dict to execute it with."""
    statement = text(sql) if isinstance(sql, str) else sql
    bound = dict(params or {})
    expanding = []
    for key, value in bound.items():
        if isinstance(value, _COLLECTION_TYPES):
            bound[key] = list(value)
            expanding.append(bindparam(key, expanding=True))
    if expanding:
        statement = statement.bindparams(*expanding)
    return statement, bound


def save_by_auto_named(
    conn: Connection,
    table_name: str | None,
    data_list: Sequence[Any] | None,
    is_ignore: bool = False,
    auto_id: bool = False,
) -> int:
    """Insert ``data_list`` with an INSERT generated from its first element.

    Properties map to columns by camelCase → snake_case conversion.

    Args:
        conn: Connection to execute on.
        table_name: Target table. Defaults to the snake_cased class name.
        data_list: Objects of one class to insert.
        is_ignore: Skip rows that collide with an existing key.
        auto_id: Leave ``id`` out so the database generates it.

    Returns:
        Number of rows inserted.
    """
    if not data_list:
        raise DaoArgumentError("data_list is empty")
    first = data_list[0]
    if first is None:
        raise DaoArgumentError("first data is null")

    clazz = type(first)
    sql = class_to_save_sql(clazz, table_name, is_ignore, auto_id, dialect=conn.dialect.name)
    names = save_properties(clazz, auto_id)
    params = [{name: getattr(data, name, None) for name in names} for data in data_list]
    logger.debug("Batch insert: %s (%s rows)", sql, len(params))
    result = conn.execute(text(sql), params)
    logger.info("Saved %s of %s %s rows", result.rowcount, len(params), clazz.__name__)
    return result.rowcount


def find_object_unique(
    conn: Connection, clazz: type[T], sql: str, params: dict[str, Any] | None = None,
) -> T | None:
    """Return the first row mapped onto ``clazz``, or None when there is none."""
    statement, bound = bind_text(sql, params)
    row = conn.execute(statement, bound).mappings().first()
    if row is None:
        return None
    return BeanRowMapper(clazz)(row, 0)


def find_object_list_by_class(
    conn: Connection, clazz: type[T], sql: str, params: dict[str, Any] | None = None,
) -> list[T]:
    """Return every row mapped onto ``clazz``."""
    return find_object_list_by_mapper(conn, BeanRowMapper(clazz), sql, params)


def find_object_list_by_mapper(
    conn: Connection, row_mapper: RowMapper, sql: str, params: dict[str, Any] | None = None,
) -> list:
    """Return every row converted by ``row_mapper``."""
    statement, bound = bind_text(sql, params)
    result = conn.execute(statement, bound).mappings()
    return [row_mapper(row, i) for i, row in enumerate(result)]


def find_object_page_by_class(
    conn: Connection,
    clazz: type[T],
    sql: str,
    start: int,
    limit: int,
    params: dict[str, Any] | None = None,
) -> Page:
    """Return one page of rows mapped onto ``clazz``."""
    return find_object_page_by_mapper(conn, BeanRowMapper(clazz), sql, start, limit, params)


def find_object_page_by_mapper(
    conn: Connection,
    row_mapper: RowMapper,
    sql: str,
    start: int,
    limit: int,
    params: dict[str, Any] | None = None,
) -> Page:
    """Return one page of rows converted by ``row_mapper``.

    Runs a COUNT query derived from ``sql`` and then the windowed select.
    Grouped queries are not supported.
    """
    check_start(start)
    total_count = count_by_sql(conn, sql, params)
    data_list = find_object_list_by_mapper(conn, row_mapper, paginate_sql(sql, start, limit), params)
    return Page.build(data_list, start, limit, total_count)


def count_by_sql(conn: Connection, sql: str, params: dict[str, Any] | None = None) -> int:
    """Run the COUNT query derived from the select ``sql``."""
    statement, bound = bind_text(build_count_sql(sql), params)
    return int(conn.execute(statement, bound).scalar() or 0)


def execute_sql(conn: Connection, sql: str, params: dict[str, Any] | None = None) -> int:
    """Execute a statement and return its affected row count."""
    statement, bound = bind_text(sql, params)
    logger.debug("Executing sql: %s", sql)
    return conn.execute(statement, bound).rowcount
