from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from sqlalchemy import String, and_, asc, cast, desc, func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from cockpit.core.config import settings
from cockpit.db.session import run_with_retry
from cockpit.schemas.lists import ListRequest

_LIKE_ESCAPE = "\\"

# Loader for resources that do not live in the database: (db, media) -> rows.
RowLoader = Callable[[Session, Any], list[dict[str, Any]]]


class ListQueryError(ValueError):
    pass


class UnknownResourceError(ListQueryError):
    pass


@dataclass(frozen=True)
class ResourceDescriptor:
    name: str
    # Public field name -> column expression (or plain field name for loaded rows).
    columns: Mapping[str, Any]
    key: str = "id"
    select_from: Any = None
    group_by: tuple = ()
    loader: RowLoader | None = None

    @property
    def in_memory(self) -> bool:
        return self.loader is not None

    def base_query(self) -> Select:
        stmt = select(*[expr.label(name) for name, expr in self.columns.items()])
        if self.select_from is not None:
            stmt = stmt.select_from(self.select_from)
        if self.group_by:
            stmt = stmt.group_by(*self.group_by)
        return stmt


def _escape_like(value: str) -> str:
    return (
        value.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


def _validate_page(lr: ListRequest) -> None:
    limit = int(settings.MAX_PAGE_SIZE)
    if limit > 0 and lr.page_size > limit:
        raise ListQueryError(f'pageSize must not exceed {limit}')


def _resolved_filters(descriptor: ResourceDescriptor, lr: ListRequest) -> list[tuple[str, str]]:
    resolved = []
    for f in lr.filters:
        column = f.column.strip()
        if column not in descriptor.columns:
            raise ListQueryError(f'Unknown filter column "{column}" for "{descriptor.name}"')
        value = str(f.value or "").strip()
        if not value:
            continue
        resolved.append((column, value))
    return resolved


def _resolved_sort(descriptor: ResourceDescriptor, lr: ListRequest) -> str | None:
    if lr.sort_by is None:
        return None
    if lr.sort_by not in descriptor.columns:
        raise ListQueryError(f'Unknown sort column "{lr.sort_by}" for "{descriptor.name}"')
    return lr.sort_by


def validate_list_request(descriptor: ResourceDescriptor, lr: ListRequest) -> None:
    _validate_page(lr)
    _resolved_filters(descriptor, lr)
    _resolved_sort(descriptor, lr)


def build_list_statements(descriptor: ResourceDescriptor, lr: ListRequest) -> tuple[Select, Select]:
    """
    Build the page query and the count query for a database-backed resource.

    Both share the same WHERE clause, so `total` always describes the filtered
    set. Every caller-supplied value is a bound parameter; caller-supplied
    names only pick entries from the resource's column whitelist.
    """
    _validate_page(lr)
    filters = _resolved_filters(descriptor, lr)
    sort_key = _resolved_sort(descriptor, lr)

    rows = descriptor.base_query().subquery(descriptor.name)
    filtered = select(rows)
    conditions = [
        cast(rows.c[column], String).ilike(f"%{_escape_like(value)}%", escape=_LIKE_ESCAPE)
        for column, value in filters
    ]
    if conditions:
        filtered = filtered.where(and_(*conditions))

    count_stmt = select(func.count()).select_from(filtered.subquery())

    ordering = []
    if sort_key is not None:
        ordering.append(asc(rows.c[sort_key]) if lr.sort_direction == "asc" else desc(rows.c[sort_key]))
    if descriptor.key in descriptor.columns and descriptor.key != sort_key:
        ordering.append(asc(rows.c[descriptor.key]))
    page_stmt = filtered.order_by(*ordering).limit(lr.page_size).offset(lr.offset)
    return page_stmt, count_stmt


def _text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _sort_value(value: Any):
    # Nulls sort after every value in ascending order.
    if value is None:
        return (1, "")
    return (0, value)


def paginate_rows(descriptor: ResourceDescriptor, rows: Sequence[dict[str, Any]], lr: ListRequest) -> dict[str, Any]:
    """Apply the database filter/sort/page semantics to already loaded rows."""
    _validate_page(lr)
    filters = _resolved_filters(descriptor, lr)
    sort_key = _resolved_sort(descriptor, lr)

    matched = []
    for row in rows:
        ok = True
        for column, value in filters:
            text = _text(row.get(column))
            if text is None or value.lower() not in text.lower():
                ok = False
                break
        if ok:
            matched.append(row)

    if descriptor.key in descriptor.columns:
        matched.sort(key=lambda r: _sort_value(r.get(descriptor.key)))
    if sort_key is not None:
        matched.sort(key=lambda r: _sort_value(r.get(sort_key)), reverse=lr.sort_direction == "desc")

    return {
        "data": matched[lr.offset : lr.offset + lr.page_size],
        "total": len(matched),
        "page": lr.page,
        "pageSize": lr.page_size,
    }


def resolve_resource(registry: Mapping[str, ResourceDescriptor], resource_name: str) -> ResourceDescriptor:
    descriptor = registry.get(str(resource_name or "").strip())
    if descriptor is None:
        raise UnknownResourceError(f'Invalid resource "{resource_name}"')
    return descriptor


def run_list_query(db: Session, descriptor: ResourceDescriptor, lr: ListRequest) -> dict[str, Any]:
    page_stmt, count_stmt = build_list_statements(descriptor, lr)

    def _fetch(session: Session) -> tuple[int, list[dict[str, Any]]]:
        total = session.execute(count_stmt).scalar_one()
        data = [dict(row) for row in session.execute(page_stmt).mappings().all()]
        return int(total or 0), data

    total, data = run_with_retry(
        db,
        _fetch,
        attempts=settings.DB_RETRY_ATTEMPTS,
        delay_seconds=settings.DB_RETRY_DELAY_SECONDS,
    )
    return {"data": data, "total": total, "page": lr.page, "pageSize": lr.page_size}
