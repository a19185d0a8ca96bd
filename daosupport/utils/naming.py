"""Bean-property introspection and camelCase → snake_case naming."""

import dataclasses
import inspect

from sqlalchemy import inspect as sa_inspect


def hump_to_underline(name: str) -> str:
    """Convert a camelCase name to snake_case.

    An underscore is inserted before every upper-case character except the
    first, then the whole name is lower-cased: ``userName`` → ``user_name``,
    ``URL`` → ``u_r_l``.
    """
    buff = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            buff.append("_")
        buff.append(char)
    return "".join(buff).lower()


def class_properties(clazz: type) -> list[str]:
    """Return the bean properties of ``clazz`` in declaration order.

    Mapped SQLAlchemy columns win over pydantic fields, which win over
    dataclass fields, which win over plain class annotations.
    """
    mapper = sa_inspect(clazz, raiseerr=False)
    if mapper is not None and hasattr(mapper, "column_attrs"):
        names = [attr.key for attr in mapper.column_attrs]
    elif hasattr(clazz, "model_fields"):
        names = list(clazz.model_fields)
    elif dataclasses.is_dataclass(clazz):
        names = [f.name for f in dataclasses.fields(clazz)]
    else:
        names = []
        for klass in reversed(clazz.__mro__):
            for name in inspect.get_annotations(klass):
                if name not in names:
                    names.append(name)
    return [n for n in names if n.lower() != "class" and not n.startswith("_")]
