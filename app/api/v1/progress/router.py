from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.syllabus.router import get_syllabus
from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.syllabus import Syllabus
from app.db.session import get_db

from .schemas import ProgressChartResponse, RankRequirements
from . import service

router = APIRouter(prefix="/api/v1/progress", tags=["progress"])


@router.get("/chart", response_model=ProgressChartResponse)
async def progress_chart(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ProgressChartResponse:
    return await service.get_progress_chart(db, current_user.id)


@router.get("/requirements", response_model=List[RankRequirements])
async def requirements(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    syllabus: Syllabus = Depends(get_syllabus),
) -> List[RankRequirements]:
    return await service.get_requirements(db, current_user.id, syllabus)
