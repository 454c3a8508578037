"""
Shared helpers: reference normalisation, time handling and list paging.
"""
from datetime import datetime, timezone
from math import ceil
from typing import Any, Dict, Mapping, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query

from config.settings import settings
from database import utcnow


def canonical_id(ref: Any) -> Optional[int]:
    """
    Normalise a reference to a comparable integer id.
    
    Accepts a raw id (int or numeric string), a loaded model instance
    exposing ``id``, or a mapping carrying ``id`` / ``_id``. Anything that
    cannot be resolved yields None, which never equals a real id.
    """
    if ref is None or isinstance(ref, bool):
        return None
    if isinstance(ref, int):
        return ref
    if isinstance(ref, str):
        ref = ref.strip()
        return int(ref) if ref.isdigit() else None
    if isinstance(ref, Mapping):
        return canonical_id(ref.get("id", ref.get("_id")))
    return canonical_id(getattr(ref, "id", None))


def same_id(left: Any, right: Any) -> bool:
    """True when both references resolve to the same canonical id."""
    left_id = canonical_id(left)
    return left_id is not None and left_id == canonical_id(right)


def as_utc(value: datetime) -> datetime:
    """Convert an incoming datetime to the naive UTC form used in storage."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def search(query: Query, q: Optional[str], *columns) -> Query:
    """
    Case-insensitive substring search OR-ed over the given columns.
    LIKE wildcards in ``q`` match literally.
    """
    if not q:
        return query
    return query.filter(or_(*[column.icontains(q, autoescape=True) for column in columns]))


def paginate(
    query: Query,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    serializer=None,
) -> Dict[str, Any]:
    """
    Apply offset pagination to a query.
    
    Returns:
        Dictionary with a ``pagination`` block (total, page, limit, pages)
        and the serialized ``items`` of the requested page.
    """
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else settings.default_page_size
    limit = min(limit, settings.max_page_size)
    
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    serializer = serializer or (lambda row: row.to_dict())
    
    return {
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": ceil(total / limit),
        },
        "items": [serializer(row) for row in rows],
    }


__all__ = ["canonical_id", "same_id", "as_utc", "utcnow", "search", "paginate"]
