"""Offset/limit pagination helpers.

Two ways of deriving the COUNT query for a page:

* ``build_count_sql`` rewrites a SQL string textually. It locates the first
  ``from`` and a trailing ``order by`` and does not understand ``GROUP BY``,
  string literals or subqueries that contain those words.
* ``build_count_statement`` wraps a SQLAlchemy select, plain or compound, as
  a subquery and handles any select the database can run.
"""

import logging

from sqlalchemy import Select, func, select
from sqlalchemy.sql.expression import GenerativeSelect, SelectBase

from daosupport.config.settings import get_setting
from daosupport.exceptions import DaoArgumentError, QueryRewriteError

logger = logging.getLogger(__name__)


def build_count_sql(sql: str) -> str:
    """Derive ``select count(*) ...`` from a select statement string."""
    lowered = sql.lower()
    from_index = lowered.find(" from ")
    if from_index < 0:
        # Statements may start directly with "from Entity ..."
        from_index = lowered.find("from ")
        if from_index < 0:
            raise QueryRewriteError(sql)

    # A closing paren after "order" means it belongs to a subquery.
    has_order = False
    order_index = lowered.find(" order ")
    if order_index > 0:
        has_order = ")" not in lowered[order_index:]

    if " group by " in lowered:
        logger.warning("Counting a grouped query textually, total may be wrong: %s", sql)

    count_sql = "select count(*) " + sql[from_index:]
    if has_order:
        count_sql = count_sql[: count_sql.lower().find(" order ")]
    logger.debug("Derived count sql: %s", count_sql)
    return count_sql


def build_count_statement(statement: SelectBase) -> Select:
    """Wrap ``statement`` in ``select count(*) from (...)``."""
    if isinstance(statement, GenerativeSelect):
        statement = statement.order_by(None).limit(None).offset(None)
    return select(func.count()).select_from(statement.subquery())


def check_start(start: int) -> None:
    """Reject a negative window offset before any query runs."""
    if start < 0:
        raise DaoArgumentError(f"start must not be negative: {start}")


def paginate_sql(sql: str, start: int, limit: int) -> str:
    """Append a LIMIT/OFFSET clause; ``limit == 0`` returns ``sql`` unchanged."""
    if limit == 0:
        return sql
    return f"{sql} LIMIT {int(limit)} OFFSET {int(start)} "


def page_numbers(start: int, limit: int, total_count: int) -> dict:
    """Compute page bookkeeping for a result window.

    Returns:
        Dict with ``start``, ``limit``, ``total_count``, ``current_page``
        and ``total_page``. A non-positive limit falls back to
        ``DAO_DEFAULT_PAGE_LIMIT``.
    """
    if limit <= 0:
        limit = get_setting("DAO_DEFAULT_PAGE_LIMIT")
    total_page = total_count // limit
    if total_count % limit != 0:
        total_page += 1
    return {
        "total_count": total_count,
        "start": start,
        "limit": limit,
        "current_page": start // limit + 1,
        "total_page": total_page,
    }
