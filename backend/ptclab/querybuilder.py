from __future__ import annotations

import math
import operator
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, List, Sequence, TypeVar

from pydantic import BaseModel
from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.dialects import sqlite
from sqlalchemy.orm import Session
from sqlalchemy.sql import ClauseElement, Select

from .database import utcnow
from .errors import InvalidRequest, NoFieldsToUpdate, NotFound

# purpose: accumulate optional filters and partial updates as bound SQL, plus page windows
# status: active

DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 50

_OPERATORS: dict[str, Callable[[Any, Any], ClauseElement]] = {
    "eq": operator.eq,
    "ne": operator.ne,
    "lt": operator.lt,
    "le": operator.le,
    "gt": operator.gt,
    "ge": operator.ge,
    "like": lambda column, value: column.like(value),
    "contains": lambda column, value: column.contains(value, autoescape=True),
    "startswith": lambda column, value: column.startswith(value, autoescape=True),
    "in": lambda column, value: column.in_(list(value)),
}


def _predicate(column, op: str, value) -> ClauseElement:
    try:
        build = _OPERATORS[op]
    except KeyError:
        raise ValueError(f"Unsupported filter operator: {op}") from None
    return build(column, value)


def _render(clause: ClauseElement) -> tuple[str, list]:
    compiled = clause.compile(
        dialect=sqlite.dialect(), compile_kwargs={"render_postcompile": True}
    )
    params = compiled.params
    return str(compiled), [params[name] for name in compiled.positiontup or ()]


class FilterSet:
    """AND-ed predicates; a filter whose value is None contributes nothing."""

    def __init__(self) -> None:
        self._predicates: list[ClauseElement] = []

    def add(self, column, op: str, value) -> "FilterSet":
        if value is None:
            return self
        self._predicates.append(_predicate(column, op, value))
        return self

    def add_any(self, columns: Iterable, op: str, value) -> "FilterSet":
        """OR the same comparison across several columns (free-text search)."""
        if value is None or value == "":
            return self
        self._predicates.append(or_(*(_predicate(column, op, value) for column in columns)))
        return self

    def add_clause(self, clause: ClauseElement) -> "FilterSet":
        self._predicates.append(clause)
        return self

    def __len__(self) -> int:
        return len(self._predicates)

    def clauses(self) -> list[ClauseElement]:
        return list(self._predicates)

    def apply(self, stmt):
        return stmt.where(*self._predicates) if self._predicates else stmt

    def render(self) -> tuple[str, list]:
        """WHERE text with ``?`` placeholders and its positional values."""
        if not self._predicates:
            return "", []
        sql, params = _render(and_(*self._predicates))
        return f"WHERE {sql}", params


class UpdateSet:
    """Assignments for fields present in a request, stamped with updated_at."""

    def __init__(self, stamp: bool = True) -> None:
        self._assignments: dict[str, Any] = {}
        self._stamp = stamp

    @classmethod
    def from_payload(cls, payload: BaseModel, exclude: Sequence[str] = ("id",)) -> "UpdateSet":
        updates = cls()
        for name, value in payload.model_dump(exclude_unset=True, exclude=set(exclude)).items():
            updates.set(name, value)
        return updates

    def set(self, name: str, value) -> "UpdateSet":
        if value is not None:
            self._assignments[name] = value
        return self

    def __len__(self) -> int:
        return len(self._assignments)

    def __contains__(self, name: str) -> bool:
        return name in self._assignments

    def get(self, name: str, default=None):
        return self._assignments.get(name, default)

    def values(self) -> dict[str, Any]:
        if not self._assignments:
            raise NoFieldsToUpdate()
        values = dict(self._assignments)
        if self._stamp:
            values["updated_at"] = utcnow()
        return values

    def apply(self, db: Session, model, row_id: str, label: str | None = None) -> None:
        result = db.execute(
            update(model)
            .where(model.id == row_id)
            .values(**self.values())
        )
        if result.rowcount == 0:
            raise NotFound(f"{label or model.__name__} not found")

    def render(self, model, row_id: str) -> tuple[str, list]:
        stmt = update(model).where(model.id == row_id).values(**self.values())
        return _render(stmt)


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    per_page: int = DEFAULT_PER_PAGE

    def __post_init__(self) -> None:
        if self.page < 1:
            raise InvalidRequest("page must be 1 or greater")
        if self.per_page < 1:
            raise InvalidRequest("per_page must be 1 or greater")

    @classmethod
    def of(cls, page: int | None = None, per_page: int | None = None) -> "PageRequest":
        return cls(
            page=DEFAULT_PAGE if page is None else page,
            per_page=DEFAULT_PER_PAGE if per_page is None else per_page,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    @property
    def limit(self) -> int:
        return self.per_page

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.per_page)


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    per_page: int
    total_pages: int


def paginate(
    db: Session,
    stmt: Select,
    page: PageRequest,
    *,
    order_by: Sequence,
    filters: FilterSet | None = None,
    transform: Callable[[Any], T] = lambda row: row,
) -> Page[T]:
    """COUNT and fetch one window using the same predicates."""
    if not order_by:
        raise ValueError("paginated queries need an explicit ordering")
    if filters is not None:
        stmt = filters.apply(stmt)
    total = db.execute(select(func.count()).select_from(stmt.order_by(None).subquery())).scalar_one()
    rows = db.execute(stmt.order_by(*order_by).offset(page.offset).limit(page.limit)).all()
    return Page[Any](
        items=[transform(row) for row in rows],
        total=total,
        page=page.page,
        per_page=page.per_page,
        total_pages=page.total_pages(total),
    )
