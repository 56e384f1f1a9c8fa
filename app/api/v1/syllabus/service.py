from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.forms.service import get_learned_names
from app.core.syllabus import Syllabus, parse_rank

from .resolver import AvailabilityResolver
from .schemas import CandidateItem, CandidateListResponse


async def get_resolver(db: AsyncSession, owner_id: UUID, syllabus: Syllabus) -> AvailabilityResolver:
    learned = await get_learned_names(db, owner_id)
    return AvailabilityResolver(syllabus, learned)


async def get_candidates(
    db: AsyncSession,
    owner_id: UUID,
    syllabus: Syllabus,
    rank_type: Optional[str] = None,
    rank_number: Optional[str] = None,
    query: Optional[str] = None,
) -> CandidateListResponse:
    # An unparseable rank falls back to the whole syllabus
    scope = parse_rank(rank_type, rank_number)
    resolver = await get_resolver(db, owner_id, syllabus)
    candidates = resolver.resolve(scope, query)
    return CandidateListResponse(
        rank_type=scope.rank_type if scope else None,
        rank_number=scope.rank_number if scope else None,
        query=(query or "").strip(),
        items=[CandidateItem(name=c.name, learned=c.learned) for c in candidates],
        all_learned=all(c.learned for c in candidates),
    )
