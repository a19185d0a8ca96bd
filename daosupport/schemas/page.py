"""Pydantic schema for one page of query results."""

from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from daosupport.utils.pagination import page_numbers

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """A window of rows plus the bookkeeping needed to page through them.

    The upper-case class constants name the entries of the plain-dict form
    returned by ``get_page_result_map``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    DATA_LIST: ClassVar[str] = "list"
    TOTAL_COUNT: ClassVar[str] = "total_count"
    START: ClassVar[str] = "start"
    LIMIT: ClassVar[str] = "limit"
    CURRENT_PAGE: ClassVar[str] = "current_page"
    TOTAL_PAGE: ClassVar[str] = "total_page"

    data_list: list[T] = Field(default_factory=list)
    total_count: int = Field(default=0, ge=0)
    start: int = Field(default=0, ge=0)
    limit: int = Field(default=0, ge=0)
    current_page: int = Field(default=1, ge=1)
    total_page: int = Field(default=0, ge=0)

    @classmethod
    def build(cls, data_list: list, start: int, limit: int, total_count: int) -> "Page":
        """Create a page from its rows and the total row count."""
        return cls(data_list=data_list, **page_numbers(start, limit, total_count))

    @classmethod
    def from_result_map(cls, result: dict[str, Any]) -> "Page":
        """Create a page from the dict form produced by ``to_result_map``."""
        return cls(
            data_list=result[cls.DATA_LIST],
            total_count=int(result[cls.TOTAL_COUNT]),
            start=int(result[cls.START]),
            limit=int(result[cls.LIMIT]),
            current_page=int(result[cls.CURRENT_PAGE]),
            total_page=int(result[cls.TOTAL_PAGE]),
        )

    def to_result_map(self) -> dict[str, Any]:
        """Return the plain-dict form, keyed by the class constants."""
        return {
            self.DATA_LIST: self.data_list,
            self.TOTAL_COUNT: self.total_count,
            self.START: self.start,
            self.LIMIT: self.limit,
            self.CURRENT_PAGE: self.current_page,
            self.TOTAL_PAGE: self.total_page,
        }
