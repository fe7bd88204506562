"""Response envelopes shared by the mission endpoints."""

from typing import Generic, List, Optional, Sequence, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of a list endpoint."""
    items: List[T]
    total: int
    page: int
    per_page: int
    pages: int

    @classmethod
    def paginate(cls, rows: Sequence, page: int, per_page: int, convert=None):
        """Cut page ``page`` (1-based) out of the full ``rows`` list."""
        start = (page - 1) * per_page
        chunk = rows[start:start + per_page]
        items = [convert(row) for row in chunk] if convert else list(chunk)
        pages = -(-len(rows) // per_page) if per_page > 0 else 0
        return cls(items=items, total=len(rows), page=page, per_page=per_page, pages=pages)


class ErrorResponse(BaseModel):
    """Body of every refused request.

    ``error`` is the message shown to the user, ``code`` the stable
    machine-readable reason (``out_of_order``, ``version_conflict``...).
    """
    error: str
    detail: Optional[str] = None
    code: Optional[str] = None
    mission_id: Optional[str] = None
