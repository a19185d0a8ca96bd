"""Generate INSERT statements from bean-style classes."""

from daosupport.exceptions import DaoArgumentError
from daosupport.utils.naming import class_properties, hump_to_underline

# Dialects without an entry fall back to MySQL's "insert ignore".
IGNORE_TEMPLATES = {
    "mysql": "insert ignore into {table} ({columns}) values ({values})",
    "sqlite": "insert or ignore into {table} ({columns}) values ({values})",
    "postgresql": "insert into {table} ({columns}) values ({values}) on conflict do nothing",
}
INSERT_TEMPLATE = "insert into {table} ({columns}) values ({values})"


def class_to_save_sql(
    clazz: type | None,
    table_name: str | None = None,
    is_ignore: bool = False,
    auto_id: bool = False,
    dialect: str = "mysql",
) -> str:
    """Build a named-parameter INSERT statement for ``clazz``.

    Properties map to columns by camelCase → snake_case conversion and bind
    as ``:propertyName``.

    Args:
        clazz: Class whose properties become the inserted columns.
        table_name: Target table. Defaults to the snake_cased class name.
        is_ignore: Skip rows that collide with an existing key.
        auto_id: Leave ``id`` out so the database generates it.
        dialect: SQLAlchemy dialect name, used to spell the ignore clause.
    """
    if clazz is None:
        raise DaoArgumentError("class is null")
    if not table_name:
        table_name = hump_to_underline(clazz.__name__)

    table_columns = []
    model_columns = []
    for name in save_properties(clazz, auto_id):
        model_columns.append(":" + name)
        table_columns.append(hump_to_underline(name))
    if not table_columns:
        raise DaoArgumentError(f"{clazz.__name__} has no properties to insert")

    if is_ignore:
        template = IGNORE_TEMPLATES.get(dialect, IGNORE_TEMPLATES["mysql"])
    else:
        template = INSERT_TEMPLATE
    return template.format(
        table=table_name,
        columns=",".join(table_columns),
        values=",".join(model_columns),
    )


def save_properties(clazz: type, auto_id: bool = False) -> list[str]:
    """Properties of ``clazz`` bound by ``class_to_save_sql``, in order."""
    return [
        name for name in class_properties(clazz)
        if not (auto_id and name.lower() == "id")
    ]
