from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.syllabus import DEFAULT_SYLLABUS, Syllabus
from app.db.session import get_db

from .schemas import CandidateListResponse
from . import service

router = APIRouter(prefix="/api/v1/syllabus", tags=["syllabus"])


def get_syllabus(request: Request) -> Syllabus:
    return getattr(request.app.state, "syllabus", DEFAULT_SYLLABUS)


@router.get("/candidates", response_model=CandidateListResponse)
async def list_candidates(
    rank_type: Optional[str] = Query(None, description="Kyu or Dan"),
    rank_number: Optional[str] = Query(None),
    q: Optional[str] = Query(None, description="Case-insensitive substring filter"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    syllabus: Syllabus = Depends(get_syllabus),
) -> CandidateListResponse:
    return await service.get_candidates(
        db,
        current_user.id,
        syllabus,
        rank_type=rank_type,
        rank_number=rank_number,
        query=q,
    )
