from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .ordering import neighbors, sort_forms
from .schemas import FormDetailResponse, FormResponse
from . import service

router = APIRouter(prefix="/api/v1/forms", tags=["forms"])


@router.post(
    "",
    response_model=FormResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_form(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FormResponse:
    try:
        return await service.create_form(db, current_user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get("", response_model=List[FormResponse])
async def list_forms(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[FormResponse]:
    forms = await service.list_live_forms(db, current_user.id)
    return sort_forms(forms)


@router.get("/trash", response_model=List[FormResponse])
async def list_trash(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[FormResponse]:
    return await service.list_trashed_forms(db, current_user.id)


@router.get("/{form_id}", response_model=FormDetailResponse)
async def get_form(
    form_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FormDetailResponse:
    try:
        form = await service.get_form(db, current_user.id, form_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    nav = await neighbors(db, current_user.id, form.id)
    return FormDetailResponse(form=form, previous_id=nav.previous_id, next_id=nav.next_id)


@router.put("/{form_id}", response_model=FormResponse)
async def update_form(
    form_id: UUID,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FormResponse:
    try:
        return await service.update_form(db, current_user.id, form_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.delete("/{form_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_form(
    form_id: UUID,
    hard: bool = Query(False, description="Delete permanently instead of moving to the trash"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> Response:
    try:
        if hard:
            await service.hard_delete_form(db, current_user.id, form_id)
        else:
            await service.soft_delete_form(db, current_user.id, form_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{form_id}/restore", response_model=FormResponse)
async def restore_form(
    form_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FormResponse:
    try:
        return await service.restore_form(db, current_user.id, form_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
