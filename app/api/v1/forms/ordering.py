"""
Prev/next navigation across one owner's live forms.

Forms are ordered by rank seniority (Kyu 10 first, up through Kyu 1, then Dan 1
up to Dan 8), then by name case-insensitively, with the id as a final tie-breaker
so the order is total. The order is rebuilt on every call; the live set can change
between requests.
"""

from typing import Any, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.syllabus import rank_seniority

from .schemas import FormNeighbors
from .service import list_live_forms


def sort_key(form: Any) -> Tuple[Tuple[int, int], str, str, str]:
    return (
        rank_seniority(form.rank_type, form.rank_number),
        form.name.casefold(),
        form.name,
        str(form.id),
    )


def sort_forms(forms: Sequence[Any]) -> List[Any]:
    return sorted(forms, key=sort_key)


async def build_order(db: AsyncSession, owner_id: UUID) -> List[UUID]:
    forms = await list_live_forms(db, owner_id)
    return [f.id for f in sort_forms(forms)]


def neighbors_in(order: Sequence[UUID], form_id: UUID) -> FormNeighbors:
    try:
        idx = list(order).index(form_id)
    except ValueError:
        return FormNeighbors()
    previous_id: Optional[UUID] = order[idx - 1] if idx > 0 else None
    next_id: Optional[UUID] = order[idx + 1] if idx < len(order) - 1 else None
    return FormNeighbors(previous_id=previous_id, next_id=next_id)


async def neighbors(db: AsyncSession, owner_id: UUID, form_id: UUID) -> FormNeighbors:
    """Ids of the forms before and after ``form_id``; both None if it isn't live."""
    order = await build_order(db, owner_id)
    return neighbors_in(order, form_id)
