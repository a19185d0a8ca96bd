"""Map result rows onto Python objects."""

import dataclasses
from typing import Any, Callable, Generic, Mapping, TypeVar

from sqlalchemy import inspect as sa_inspect

from daosupport.utils.naming import class_properties, hump_to_underline

T = TypeVar("T")

# (row mapping, zero-based row number) -> object
RowMapper = Callable[[Mapping[str, Any], int], T]


class BeanRowMapper(Generic[T]):
    """Row mapper that fills the properties of ``clazz`` from column labels.

    A column matches a property when its lower-cased label equals either the
    lower-cased property name or its snake_case form, so ``user_name`` fills
    both ``user_name`` and ``userName``. Columns without a matching property
    are ignored. Classes that declare no properties get one attribute per
    column instead.

    Args:
        clazz: The class to instantiate for each row.
    """

    def __init__(self, clazz: type[T]):
        self._clazz = clazz
        self._properties = class_properties(clazz)
        self._lookup: dict[str, str] = {}
        for name in self._properties:
            self._lookup[name.lower()] = name
            self._lookup.setdefault(hump_to_underline(name), name)
        self._keyword_init = (
            dataclasses.is_dataclass(clazz)
            or hasattr(clazz, "model_fields")
            or sa_inspect(clazz, raiseerr=False) is not None
        )

    def __call__(self, row: Mapping[str, Any], row_number: int) -> T:
        if not self._properties:
            instance = self._clazz()
            for label, value in row.items():
                setattr(instance, label, value)
            return instance

        values = {}
        for label, value in row.items():
            name = self._lookup.get(str(label).lower())
            if name is not None:
                values[name] = value

        if self._keyword_init:
            return self._clazz(**values)
        instance = self._clazz()
        for name, value in values.items():
            setattr(instance, name, value)
        return instance
